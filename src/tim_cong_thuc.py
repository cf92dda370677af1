# tim_cong_thuc.py - Tìm vị trí công thức OLE (placeholder) trong document.xml
#
# Ba dạng placeholder được nhận diện:
#   1. <w:object> chứa <o:OLEObject r:id="..."/>
#   2. <w:pict> chứa <v:imagedata r:id="..."/>  (ảnh xem trước VML kiểu cũ, chỉ khi không có OLEObject)
#   3. <o:OLEObject r:id="..."/> đứng riêng

from config import W_NAMESPACE, OLE_NAMESPACE, VML_NAMESPACE, R_NAMESPACE
from utils import phan_tich_xml
from xu_ly_quan_he import lay_rid_ole

TAG_OBJECT = f'{{{W_NAMESPACE}}}object'
TAG_PICT = f'{{{W_NAMESPACE}}}pict'
TAG_OLE = f'{{{OLE_NAMESPACE}}}OLEObject'
TAG_IMAGEDATA = f'{{{VML_NAMESPACE}}}imagedata'


def _rid_imagedata(phan_tu) -> str:
    imagedata = phan_tu.find(f'.//{TAG_IMAGEDATA}')
    if imagedata is None:
        return ''
    return imagedata.get(f'{{{R_NAMESPACE}}}id') or ''


def lay_rid_placeholder(phan_tu):
    # Trả về rId nếu phần tử là placeholder công thức, ngược lại None
    # '' = placeholder nhưng không có rId (vẫn hiển thị là công thức thiếu)
    tag = phan_tu.tag
    if tag == TAG_OBJECT:
        ole = phan_tu.find(f'.//{TAG_OLE}')
        if ole is not None:
            return lay_rid_ole(ole)
        # w:object không có OLEObject: dùng ảnh xem trước nếu có
        return _rid_imagedata(phan_tu) or None
    if tag == TAG_PICT:
        # OLEObject thắng ảnh xem trước; không có cả hai (textbox, shape...) → duyệt như phần tử thường
        ole = phan_tu.find(f'.//{TAG_OLE}')
        if ole is not None:
            return lay_rid_ole(ole) or _rid_imagedata(phan_tu) or None
        return _rid_imagedata(phan_tu) or None
    if tag == TAG_OLE:
        return lay_rid_ole(phan_tu) or None
    return None


def tim_rid_ole(document_xml: str) -> list:
    # Thu thập rId (không trùng) của OLEObject và v:imagedata theo thứ tự tài liệu
    root = phan_tich_xml(document_xml)
    if root is None:
        return []

    da_gap = set()
    danh_sach = []
    for phan_tu in root.iter(TAG_OLE, TAG_IMAGEDATA):
        if phan_tu.tag == TAG_OLE:
            rid = lay_rid_ole(phan_tu)
        else:
            rid = phan_tu.get(f'{{{R_NAMESPACE}}}id') or ''
        if rid and rid not in da_gap:
            da_gap.add(rid)
            danh_sach.append(rid)
    return danh_sach
