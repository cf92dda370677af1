# chuyen_doi.py - Bộ điều khiển chính: .docx bytes → công thức + HTML/text chèn công thức
#
# Lớp ChuyenDoiCongThucWord đóng vai trò controller:
#   - Đọc gói .docx (goi_docx)
#   - Ánh xạ rId → embedding / ProgID (xu_ly_quan_he)
#   - Tìm placeholder công thức (tim_cong_thuc)
#   - Chuyển từng OLE → MathML → LaTeX, lập sổ đăng ký (so_dang_ky)
#   - Dựng HTML inline + plain text (dung_lai_noi_dung), HTML dự phòng (html_du_phong)
#
# Mọi dữ liệu đều gắn với một request, không có trạng thái dùng chung giữa các request.

from chuyen_doi_cong_thuc import BoChuyenMathMLRuby
from dung_lai_noi_dung import dung_html_inline, dung_van_ban_thuan
from goi_docx import doc_goi_docx
from html_du_phong import docx_sang_html
from so_dang_ky import xay_dung_so_dang_ky
from tim_cong_thuc import tim_rid_ole
from xu_ly_quan_he import anh_xa_rid_sang_embedding, anh_xa_progid


class ChuyenDoiCongThucWord:
    # Lớp chính: nhận bytes .docx, trả payload JSON

    def __init__(self, cau_hinh=None, bo_chuyen_mathml=None, bo_chuyen_latex=None):
        self.cau_hinh = cau_hinh
        if bo_chuyen_mathml is None:
            if cau_hinh is not None:
                bo_chuyen_mathml = BoChuyenMathMLRuby(cau_hinh.lenh_mt2mml, cau_hinh.thoi_gian_cho_mt2mml)
            else:
                bo_chuyen_mathml = BoChuyenMathMLRuby()
        self.bo_chuyen_mathml = bo_chuyen_mathml
        self.bo_chuyen_latex = bo_chuyen_latex

    def lap_so_dang_ky(self, goi) -> dict:
        # Bước 1-2: rels + placeholder → chuyển đổi từng công thức
        anh_xa_embedding = anh_xa_rid_sang_embedding(goi.rels_xml)
        danh_sach_rid = tim_rid_ole(goi.document_xml)
        progid = anh_xa_progid(goi.document_xml)

        return xay_dung_so_dang_ky(
            danh_sach_rid, anh_xa_embedding, progid, goi.file_nhung,
            self.bo_chuyen_mathml, self.bo_chuyen_latex,
        )

    def chuyen_doi(self, du_lieu_docx: bytes) -> dict:
        """Thực hiện chuyển đổi: đọc gói → lập sổ công thức → dựng HTML/text.

        Lỗi gói .docx (không phải ZIP) ném LoiTaiLieuKhongHopLe; lỗi từng công
        thức chỉ được ghi vào bản ghi của công thức đó.
        """
        goi = doc_goi_docx(du_lieu_docx)
        so_dang_ky = self.lap_so_dang_ky(goi)
        danh_sach = [ban_ghi.sang_dict() for ban_ghi in so_dang_ky.values()]

        return {
            'ok': True,
            'count': len(danh_sach),
            'equations': danh_sach,
            'htmlFallback': docx_sang_html(du_lieu_docx),
            'inlineHtml': dung_html_inline(goi.document_xml, so_dang_ky),
            'plainText': dung_van_ban_thuan(goi.document_xml, so_dang_ky),
        }
