# config.py - Hằng số, namespace, và cấu hình cho dự án Word2Math

import os
import shlex

from utils import in_log_loi

# NAMESPACES

# Namespace cho nội dung Word (document.xml)
W_NAMESPACE = 'http://schemas.openxmlformats.org/wordprocessingml/2006/main'

# Namespaces cho OLE Object (Equation Editor cũ / MathType)
OLE_NAMESPACE = 'urn:schemas-microsoft-com:office:office'

VML_NAMESPACE = 'urn:schemas-microsoft-com:vml'

R_NAMESPACE = 'http://schemas.openxmlformats.org/officeDocument/2006/relationships'

# Namespace của file .rels (package relationships, khác với r:id trong document.xml)
PKG_REL_NAMESPACE = 'http://schemas.openxmlformats.org/package/2006/relationships'

# Markup Compatibility (mc:AlternateContent)
MC_NAMESPACE = 'http://schemas.openxmlformats.org/markup-compatibility/2006'

# ĐƯỜNG DẪN TRONG GÓI DOCX

DUONG_DAN_DOCUMENT_XML = 'word/document.xml'
DUONG_DAN_RELS_XML = 'word/_rels/document.xml.rels'
THU_MUC_GOC_WORD = 'word/'
TIEN_TO_EMBEDDINGS = 'embeddings/'
DUOI_FILE_OLE = '.bin'

# GIỚI HẠN

# Số stream tối đa liệt kê khi debug OLE
SO_STREAM_TOI_DA = 30

# LOẠI LỖI CHUYỂN ĐỔI (giữ nguyên chuỗi để frontend cũ vẫn hiểu)

LOI_RUBY = 'ruby_converter_error'
LOI_MATHML_RONG = 'converter_empty_mathml'
LOI_LATEX = 'latex_convert_failed'

# HIỂN THỊ

# CSS cố định đặt trước HTML inline
STYLE_HTML_INLINE = """
  <style>
    .eq-inline{padding:2px 4px;border-radius:6px}
    .eq-inline code{background:#0b1020;color:#d1e7ff;border-radius:6px;padding:4px 6px}
    .eq-inline-missing{color:#dc2626;border-bottom:1px dotted #dc2626}
  </style>
"""

TOKEN_MATHML_CHUA_DICH = '[MATHML]'
TOKEN_CONG_THUC_KHONG_RO = '[MATH?]'
NHAN_CONG_THUC_THIEU = '[công&nbsp;thức]'

# Lệnh mặc định gọi converter MathType → MathML (gem mathtype_to_mathml)
_THU_MUC_BACKEND = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'backend')
LENH_MT2MML_MAC_DINH = ['ruby', os.path.join(_THU_MUC_BACKEND, 'mt2mml.rb')]


def _doc_so_nguyen(ten_bien: str, mac_dinh: int) -> int:
    # Đọc biến môi trường kiểu int, sai định dạng thì dùng mặc định
    gia_tri = os.getenv(ten_bien, '').strip()
    if not gia_tri:
        return mac_dinh
    try:
        return int(gia_tri)
    except ValueError as loi:
        in_log_loi(f'Giá trị {ten_bien} không hợp lệ, dùng mặc định {mac_dinh}', loi)
        return mac_dinh


def _doc_so_thuc(ten_bien: str):
    # Đọc biến môi trường kiểu float, rỗng/sai/<=0 → None (không giới hạn)
    gia_tri = os.getenv(ten_bien, '').strip()
    if not gia_tri:
        return None
    try:
        so = float(gia_tri)
    except ValueError as loi:
        in_log_loi(f'Giá trị {ten_bien} không hợp lệ, bỏ qua', loi)
        return None
    return so if so > 0 else None


class CauHinhMayChu:
    # Cấu hình tiến trình, tạo một lần khi khởi động rồi truyền vào app

    def __init__(self, cong: int = 8080, nguon_cho_phep: list = None,
                 dung_luong_toi_da_mb: int = 15, lenh_mt2mml: list = None,
                 thoi_gian_cho_mt2mml: float = None):
        self.cong = cong
        self.nguon_cho_phep = list(nguon_cho_phep or [])
        self.dung_luong_toi_da_mb = dung_luong_toi_da_mb
        self.lenh_mt2mml = list(lenh_mt2mml or LENH_MT2MML_MAC_DINH)
        self.thoi_gian_cho_mt2mml = thoi_gian_cho_mt2mml

    @property
    def dung_luong_toi_da_byte(self) -> int:
        return self.dung_luong_toi_da_mb * 1024 * 1024

    def cho_phep_moi_nguon(self) -> bool:
        # Danh sách rỗng = cho phép tất cả origin
        return not self.nguon_cho_phep

    @classmethod
    def tu_bien_moi_truong(cls):
        # Đọc cấu hình từ biến môi trường
        nguon_raw = os.getenv('ALLOWED_ORIGINS', '')
        nguon_cho_phep = [o.strip() for o in nguon_raw.split(',') if o.strip()]

        lenh_raw = os.getenv('MT2MML_CMD', '').strip()
        lenh_mt2mml = shlex.split(lenh_raw) if lenh_raw else None

        return cls(
            cong=_doc_so_nguyen('PORT', 8080),
            nguon_cho_phep=nguon_cho_phep,
            dung_luong_toi_da_mb=max(1, _doc_so_nguyen('MAX_UPLOAD_MB', 15)),
            lenh_mt2mml=lenh_mt2mml,
            thoi_gian_cho_mt2mml=_doc_so_thuc('MT2MML_TIMEOUT'),
        )
