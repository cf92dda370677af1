# goi_docx.py - Đọc gói .docx (ZIP): document.xml, document.xml.rels, OLE .bin
#
# Chỉ đọc đúng những entry cần cho pipeline công thức, không dùng python-docx
# vì cần giữ nguyên XML gốc (w:object, v:imagedata, o:OLEObject).

import io
import zipfile

from config import (
    DUONG_DAN_DOCUMENT_XML, DUONG_DAN_RELS_XML,
    THU_MUC_GOC_WORD, TIEN_TO_EMBEDDINGS, DUOI_FILE_OLE,
)


class LoiTaiLieuKhongHopLe(Exception):
    # File upload không phải gói .docx đọc được
    pass


class GoiDocx:
    # Nội dung thô của gói docx mà pipeline cần

    def __init__(self, document_xml: str = '', rels_xml: str = '', file_nhung: dict = None):
        self.document_xml = document_xml
        self.rels_xml = rels_xml
        # {đường dẫn trong zip: bytes}, chỉ chứa word/embeddings/*.bin
        self.file_nhung = file_nhung or {}


def _doc_text(zf: zipfile.ZipFile, ten: str) -> str:
    try:
        return zf.read(ten).decode('utf-8', errors='replace')
    except KeyError:
        return ''


def doc_goi_docx(du_lieu: bytes) -> GoiDocx:
    # Mở gói docx từ bytes; lỗi ZIP → LoiTaiLieuKhongHopLe
    if not du_lieu:
        raise LoiTaiLieuKhongHopLe("File rỗng")

    thu_muc_embeddings = THU_MUC_GOC_WORD + TIEN_TO_EMBEDDINGS
    try:
        with zipfile.ZipFile(io.BytesIO(du_lieu)) as zf:
            document_xml = _doc_text(zf, DUONG_DAN_DOCUMENT_XML)
            rels_xml = _doc_text(zf, DUONG_DAN_RELS_XML)

            file_nhung = {}
            for ten in zf.namelist():
                if ten.startswith(thu_muc_embeddings) and ten.endswith(DUOI_FILE_OLE):
                    file_nhung[ten] = zf.read(ten)
    except zipfile.BadZipFile as loi:
        raise LoiTaiLieuKhongHopLe(f"File không phải .docx hợp lệ: {loi}") from loi

    return GoiDocx(document_xml=document_xml, rels_xml=rels_xml, file_nhung=file_nhung)
