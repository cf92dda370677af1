# utils.py - Tiện ích: escape HTML, in log, xóa file tạm

import os
import time

from lxml import etree


def in_log_loi(thong_diep: str, loi: Exception = None):
    # In log lỗi ra console để developer dễ debug
    if loi is not None:
        print(f"[LOI] {thong_diep}: {loi}")
    else:
        print(f"[LOI] {thong_diep}")


def in_canh_bao(thong_diep: str, loi: Exception = None):
    # Cảnh báo: lỗi đã được xử lý, luồng chính vẫn chạy tiếp
    if loi is not None:
        print(f"[Cảnh báo] {thong_diep}: {loi}")
    else:
        print(f"[Cảnh báo] {thong_diep}")


def in_thong_tin(thong_diep: str):
    print(f"[INFO] {thong_diep}")


def escape_html(text) -> str:
    # Escape &, <, > cho nội dung text trong HTML
    if text is None:
        return ""
    ket_qua = str(text)
    ket_qua = ket_qua.replace('&', '&amp;')
    ket_qua = ket_qua.replace('<', '&lt;')
    ket_qua = ket_qua.replace('>', '&gt;')
    return ket_qua


_KY_TU_DAC_BIET_LATEX = {
    '\\': r'\textbackslash{}',
    '%': r'\%',
    '$': r'\$',
    '_': r'\_',
    '&': r'\&',
    '#': r'\#',
    '{': r'\{',
    '}': r'\}',
    '~': r'\textasciitilde{}',
    '^': r'\textasciicircum{}',
}


def loc_ky_tu(text: str) -> str:
    # Escape các ký tự đặc biệt LaTeX (\, %, $, _, &, #, {, }, ~, ^), thay từng ký tự một lần
    if not text:
        return ""
    return ''.join(_KY_TU_DAC_BIET_LATEX.get(ky_tu, ky_tu) for ky_tu in text)


def escape_thuoc_tinh(text) -> str:
    # Escape giá trị thuộc tính HTML đặt trong dấu nháy kép
    if text is None:
        return ""
    return str(text).replace('&', '&amp;').replace('"', '&quot;')


def xoa_file_an_toan(duong_dan_file: str, so_lan_thu: int = 3, thoi_gian_cho_ms: int = 100) -> bool:
    # Xóa file an toàn có retry để tránh lỗi file đang bị hệ thống khóa
    for lan in range(max(1, so_lan_thu)):
        try:
            if os.path.exists(duong_dan_file):
                os.remove(duong_dan_file)
            return True
        except PermissionError as e:
            in_canh_bao(f"Không thể xóa (đang bị khóa): {duong_dan_file}", e)
            time.sleep(max(0, thoi_gian_cho_ms) / 1000.0)
        except Exception as e:
            in_canh_bao(f"Không thể xóa file: {duong_dan_file}", e)
            return False
    return False


def phan_tich_xml(xml_text: str):
    # Parse chuỗi XML → root element; rỗng hoặc lỗi cú pháp → None
    if not xml_text or not xml_text.strip():
        return None
    parser = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=True)
    try:
        return etree.fromstring(xml_text.encode('utf-8'), parser)
    except etree.XMLSyntaxError as loi:
        in_canh_bao("XML không hợp lệ, bỏ qua", loi)
        return None


def ten_cuc_bo(phan_tu) -> str:
    # Lấy local name của tag (bỏ namespace); comment/PI → ''
    tag = phan_tu.tag
    if not isinstance(tag, str):
        return ''
    return tag.split('}')[-1] if '}' in tag else tag
