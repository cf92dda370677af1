# html_du_phong.py - HTML dự phòng cho cả tài liệu (không chèn công thức)
#
# Ưu tiên mammoth (HTML ngữ nghĩa sạch), lỗi thì đọc paragraph bằng python-docx.

import io

import mammoth
from docx import Document

from utils import escape_html, in_canh_bao


def _html_tu_python_docx(du_lieu: bytes) -> str:
    tai_lieu = Document(io.BytesIO(du_lieu))
    cac_doan = []
    for doan_van in tai_lieu.paragraphs:
        text = (doan_van.text or '').strip()
        cac_doan.append(f'<p>{escape_html(text)}</p>' if text else '<p><br></p>')
    return '\n'.join(cac_doan)


def docx_sang_html(du_lieu: bytes) -> str:
    # Không bao giờ ném exception: lỗi cả hai hướng → ''
    try:
        ket_qua = mammoth.convert_to_html(io.BytesIO(du_lieu))
        return ket_qua.value or ''
    except Exception as loi:
        in_canh_bao("mammoth không chuyển được HTML, thử python-docx", loi)

    try:
        return _html_tu_python_docx(du_lieu)
    except Exception as loi:
        in_canh_bao("python-docx cũng không đọc được tài liệu", loi)
        return ''
