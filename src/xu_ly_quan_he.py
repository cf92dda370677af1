# xu_ly_quan_he.py - Ánh xạ relationship ID → file OLE nhúng và → ProgID
#
# Hai bảng tra cứu dùng chung cho một request:
#   rId → 'word/embeddings/oleObjectN.bin'   (từ document.xml.rels)
#   rId → ProgID ('Equation.3', 'Equation.DSMT4', ...)  (từ document.xml)

from config import (
    OLE_NAMESPACE, R_NAMESPACE, PKG_REL_NAMESPACE,
    THU_MUC_GOC_WORD, TIEN_TO_EMBEDDINGS,
)
from utils import phan_tich_xml


def chuan_hoa_duong_dan_embedding(target: str):
    # 'embeddings/x.bin' | './embeddings/x.bin' | '/word/embeddings/x.bin' → 'word/embeddings/x.bin'
    # Target không nằm trong embeddings → None
    if not target:
        return None
    duong_dan = str(target).strip()
    if duong_dan.startswith('./'):
        duong_dan = duong_dan[2:]
    duong_dan = duong_dan.lstrip('/')
    if duong_dan.startswith(THU_MUC_GOC_WORD + TIEN_TO_EMBEDDINGS):
        return duong_dan
    if duong_dan.startswith(TIEN_TO_EMBEDDINGS):
        return THU_MUC_GOC_WORD + duong_dan
    return None


def anh_xa_rid_sang_embedding(rels_xml: str) -> dict:
    # Đọc document.xml.rels, chỉ giữ các relationship trỏ vào word/embeddings/
    anh_xa = {}
    root = phan_tich_xml(rels_xml)
    if root is None:
        return anh_xa

    for quan_he in root.iter(f'{{{PKG_REL_NAMESPACE}}}Relationship', 'Relationship'):
        rid = quan_he.get('Id')
        duong_dan = chuan_hoa_duong_dan_embedding(quan_he.get('Target'))
        if rid and duong_dan:
            anh_xa[rid] = duong_dan
    return anh_xa


def lay_rid_ole(ole) -> str:
    # rId của o:OLEObject: r:id trực tiếp, hoặc dạng link-by-reference
    return (
        ole.get(f'{{{R_NAMESPACE}}}id')
        or ole.get(f'{{{R_NAMESPACE}}}linkByRef')
        or ole.get('linkByRef')
        or ''
    )


def anh_xa_progid(document_xml: str) -> dict:
    # Duyệt mọi o:OLEObject trong document.xml → {rId: ProgID}
    anh_xa = {}
    root = phan_tich_xml(document_xml)
    if root is None:
        return anh_xa

    for ole in root.iter(f'{{{OLE_NAMESPACE}}}OLEObject'):
        rid = lay_rid_ole(ole)
        if rid:
            anh_xa[rid] = ole.get('ProgID') or ole.get('progId') or ''
    return anh_xa
