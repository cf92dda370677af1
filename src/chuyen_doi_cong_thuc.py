# chuyen_doi_cong_thuc.py - Chuyển OLE .bin (MathType / Equation 3.0) → MathML → LaTeX
#
# Pipeline cho MỘT công thức:
#   1. Ghi bytes ra file tạm (tên ngẫu nhiên, luôn bị xóa ở finally)
#   2. Gọi converter nhị phân → MathML (mặc định: ruby + gem mathtype_to_mathml)
#   3. Chỉ khi MathML hợp lệ (bắt đầu bằng '<') mới chuyển MathML → LaTeX
#
# Mỗi bước trả về KetQuaBuoc thay vì ném exception, bước sau đọc kết quả bước trước.
#
# Cách dùng:
#   bo_mathml = BoChuyenMathMLRuby(['ruby', 'backend/mt2mml.rb'])
#   kq = chuyen_ole_sang_mathml_latex(du_lieu_bin, 'oleObject1.bin', bo_mathml)
#   kq.mathml, kq.latex, kq.loi, kq.chi_tiet_loi

import os
import subprocess
import tempfile

from config import LENH_MT2MML_MAC_DINH, LOI_RUBY, LOI_MATHML_RONG, LOI_LATEX
from mathml_sang_latex import mathml_sang_latex
from utils import in_canh_bao, xoa_file_an_toan


class KetQuaBuoc:
    # Kết quả một bước chuyển đổi: giá trị hoặc (loại lỗi, chi tiết lỗi)

    def __init__(self, gia_tri: str = '', loi: str = '', chi_tiet_loi: str = ''):
        self.gia_tri = gia_tri or ''
        self.loi = loi or ''
        self.chi_tiet_loi = chi_tiet_loi or ''

    @property
    def thanh_cong(self) -> bool:
        return not self.loi and bool(self.gia_tri.strip())


class KetQuaCongThuc:
    # Kết quả cuối của một công thức: mathml, latex, loi, chi_tiet_loi

    def __init__(self, mathml: str = '', latex: str = '', loi: str = '', chi_tiet_loi: str = ''):
        self.mathml = mathml
        self.latex = latex
        self.loi = loi
        self.chi_tiet_loi = chi_tiet_loi


def la_mathml_hop_le(mathml: str) -> bool:
    # MathML hợp lệ tối thiểu: sau khi trim bắt đầu bằng thẻ mở '<'
    return bool(mathml) and mathml.strip().startswith('<')


class BoChuyenMathMLRuby:
    # Converter nhị phân → MathML chạy tiến trình ngoài (mặc định ruby mt2mml.rb <file>)

    def __init__(self, lenh: list = None, thoi_gian_cho: float = None):
        self.lenh = list(lenh or LENH_MT2MML_MAC_DINH)
        self.thoi_gian_cho = thoi_gian_cho

    def __call__(self, duong_dan_bin: str) -> KetQuaBuoc:
        try:
            ket_qua = subprocess.run(
                self.lenh + [duong_dan_bin],
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                encoding='utf-8',
                errors='replace',
                timeout=self.thoi_gian_cho,
            )
        except FileNotFoundError as e:
            return KetQuaBuoc(loi=LOI_RUBY, chi_tiet_loi=f"Không tìm thấy converter: {e}")
        except subprocess.TimeoutExpired:
            return KetQuaBuoc(loi=LOI_RUBY, chi_tiet_loi=f"Converter quá thời gian (>{self.thoi_gian_cho}s)")
        except OSError as e:
            return KetQuaBuoc(loi=LOI_RUBY, chi_tiet_loi=str(e))

        if ket_qua.returncode != 0:
            chi_tiet = (ket_qua.stderr or '').strip() or f"exit code {ket_qua.returncode}"
            return KetQuaBuoc(loi=LOI_RUBY, chi_tiet_loi=chi_tiet)

        mathml = ket_qua.stdout or ''
        if not la_mathml_hop_le(mathml):
            # Đầu ra rác không được coi là MathML
            chi_tiet = (ket_qua.stderr or '').strip() or mathml.strip()[:500]
            return KetQuaBuoc(loi=LOI_MATHML_RONG, chi_tiet_loi=chi_tiet)
        return KetQuaBuoc(gia_tri=mathml)


def chuyen_mathml_sang_latex(mathml: str) -> KetQuaBuoc:
    # Bước 2: MathML → LaTeX, lỗi bị gói vào KetQuaBuoc
    try:
        latex = mathml_sang_latex(mathml)
    except Exception as e:
        return KetQuaBuoc(loi=LOI_LATEX, chi_tiet_loi=str(e))
    if not latex or not latex.strip():
        return KetQuaBuoc(loi=LOI_LATEX)
    return KetQuaBuoc(gia_tri=latex)


def _ghi_file_tam(du_lieu: bytes, ten_tam: str) -> str:
    # Tên file tạm = tiền tố ngẫu nhiên + tên file nhúng, tránh đè nhau giữa các request
    hau_to = '_' + os.path.basename(ten_tam or 'ole.bin')
    fd, duong_dan = tempfile.mkstemp(prefix='ole_', suffix=hau_to)
    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(du_lieu)
    except Exception:
        xoa_file_an_toan(duong_dan)
        raise
    return duong_dan


def chuyen_ole_sang_mathml_latex(du_lieu: bytes, ten_tam: str,
                                 bo_chuyen_mathml=None, bo_chuyen_latex=None) -> KetQuaCongThuc:
    # Hàm chính: OLE bytes → KetQuaCongThuc (không ném exception vì lỗi chuyển đổi)
    bo_chuyen_mathml = bo_chuyen_mathml or BoChuyenMathMLRuby()
    bo_chuyen_latex = bo_chuyen_latex or chuyen_mathml_sang_latex

    mathml, latex, loi, chi_tiet_loi = '', '', '', ''

    duong_dan_tam = None
    try:
        duong_dan_tam = _ghi_file_tam(du_lieu, ten_tam)
        buoc_mathml = bo_chuyen_mathml(duong_dan_tam)
        mathml = buoc_mathml.gia_tri
        loi = buoc_mathml.loi
        chi_tiet_loi = buoc_mathml.chi_tiet_loi
        if not la_mathml_hop_le(mathml):
            mathml = ''
            loi = loi or LOI_MATHML_RONG
    except Exception as e:
        in_canh_bao(f"Converter MathML lỗi với {ten_tam}", e)
        loi = LOI_RUBY
        chi_tiet_loi = str(e)
    finally:
        if duong_dan_tam:
            xoa_file_an_toan(duong_dan_tam)

    if la_mathml_hop_le(mathml):
        try:
            buoc_latex = bo_chuyen_latex(mathml)
        except Exception as e:
            buoc_latex = KetQuaBuoc(loi=LOI_LATEX, chi_tiet_loi=str(e))
        if buoc_latex.thanh_cong:
            latex = buoc_latex.gia_tri
        else:
            # Giữ lỗi của bước trước nếu đã có, MathML vẫn được giữ lại
            loi = loi or LOI_LATEX
            chi_tiet_loi = chi_tiet_loi or buoc_latex.chi_tiet_loi

    return KetQuaCongThuc(mathml=mathml, latex=latex, loi=loi, chi_tiet_loi=chi_tiet_loi)
