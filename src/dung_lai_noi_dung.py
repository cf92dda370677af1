# dung_lai_noi_dung.py - Dựng lại nội dung document.xml thành HTML / plain text
#                         và chèn công thức đúng vị trí placeholder
#
# Hai chế độ dùng chung một cách duyệt cây:
#   'html' : <p>...</p>, text được escape, công thức → <span class="eq-inline">
#   'text' : đoạn văn cách nhau bởi dòng trống, công thức → $latex$
#
# Cách dùng:
#   html = dung_html_inline(document_xml, so_dang_ky)
#   text = dung_van_ban_thuan(document_xml, so_dang_ky)

import re

from config import (
    W_NAMESPACE, MC_NAMESPACE,
    STYLE_HTML_INLINE, TOKEN_MATHML_CHUA_DICH, TOKEN_CONG_THUC_KHONG_RO,
    NHAN_CONG_THUC_THIEU,
)
from tim_cong_thuc import lay_rid_placeholder
from utils import escape_html, escape_thuoc_tinh, phan_tich_xml, ten_cuc_bo

CHE_DO_HTML = 'html'
CHE_DO_TEXT = 'text'

TAG_BODY = f'{{{W_NAMESPACE}}}body'
TAG_P = f'{{{W_NAMESPACE}}}p'
TAG_T = f'{{{W_NAMESPACE}}}t'
TAG_BR = f'{{{W_NAMESPACE}}}br'
TAG_CR = f'{{{W_NAMESPACE}}}cr'
TAG_TAB = f'{{{W_NAMESPACE}}}tab'
TAG_ALTERNATE = f'{{{MC_NAMESPACE}}}AlternateContent'
TAG_CHOICE = f'{{{MC_NAMESPACE}}}Choice'
TAG_FALLBACK = f'{{{MC_NAMESPACE}}}Fallback'

_XML_DECLARATION = re.compile(r'^\s*<\?xml[^>]*\?>\s*')
_MATH_BLOCK = re.compile(r'<((?:\w+:)?math)\b([^>]*?)display="block"', re.IGNORECASE)
_MATH_KHONG_DISPLAY = re.compile(r'<((?:\w+:)?math)\b(?![^>]*display=)', re.IGNORECASE)


def ep_mathml_inline(mathml: str) -> str:
    # Ép mọi <math> về display="inline" để chèn giữa dòng chữ
    mml = _XML_DECLARATION.sub('', str(mathml))
    mml = _MATH_BLOCK.sub(r'<\1\2display="inline"', mml)
    mml = _MATH_KHONG_DISPLAY.sub(r'<\1 display="inline"', mml)
    return mml


def _la_thuoc_tinh_word(phan_tu) -> bool:
    # w:pPr, w:rPr, w:sectPr, w:tblPr... không phải nội dung (w:tab trong w:tabs là tab stop)
    tag = phan_tu.tag
    return tag.startswith(f'{{{W_NAMESPACE}}}') and tag.endswith('Pr')


def _chon_nhanh_alternate(phan_tu):
    # mc:AlternateContent: ưu tiên Fallback (VML / w:object), không có thì lấy Choice đầu tiên
    fallback = phan_tu.find(TAG_FALLBACK)
    if fallback is not None:
        return fallback
    return phan_tu.find(TAG_CHOICE)


class BoDungLaiNoiDung:
    # Duyệt cây body theo thứ tự tài liệu, sinh HTML hoặc text

    def __init__(self, so_dang_ky: dict = None, che_do: str = CHE_DO_HTML):
        if che_do not in (CHE_DO_HTML, CHE_DO_TEXT):
            raise ValueError(f"Chế độ không hợp lệ: {che_do}")
        self.so_dang_ky = so_dang_ky or {}
        self.che_do = che_do

    # API CHÍNH

    def dung(self, document_xml: str) -> str:
        root = phan_tich_xml(document_xml)
        body = None
        if root is not None:
            body = root if root.tag == TAG_BODY else root.find(TAG_BODY)

        cac_doan = []
        if body is not None:
            for doan_van in self._cac_doan_van(body):
                cac_doan.append(self.dung_doan_van(doan_van))

        if self.che_do == CHE_DO_HTML:
            return STYLE_HTML_INLINE + '\n'.join(cac_doan)
        return '\n\n'.join(cac_doan)

    def dung_doan_van(self, doan_van) -> str:
        # Một w:p → một đơn vị đầu ra
        buf = []
        self._duyet(doan_van, buf)
        noi_dung = ''.join(buf)
        if self.che_do == CHE_DO_HTML:
            return f'<p>{noi_dung or "&nbsp;"}</p>'
        return noi_dung.replace('\u00a0', ' ')

    # DUYỆT CÂY

    def _cac_doan_van(self, phan_tu):
        # Các w:p ngoài cùng theo thứ tự (kể cả trong bảng, content control)
        for con in phan_tu:
            if not ten_cuc_bo(con):
                continue
            if con.tag == TAG_P:
                yield con
            elif con.tag == TAG_ALTERNATE:
                nhanh = _chon_nhanh_alternate(con)
                if nhanh is not None:
                    yield from self._cac_doan_van(nhanh)
            elif not _la_thuoc_tinh_word(con):
                yield from self._cac_doan_van(con)

    def _duyet(self, phan_tu, buf: list):
        for con in phan_tu:
            if not ten_cuc_bo(con):
                # comment / processing instruction
                continue
            tag = con.tag

            if tag == TAG_T:
                buf.append(self._van_ban(con.text or ''))
            elif tag in (TAG_BR, TAG_CR):
                buf.append('<br/>' if self.che_do == CHE_DO_HTML else '\n')
            elif tag == TAG_TAB:
                buf.append('&emsp;' if self.che_do == CHE_DO_HTML else '\t')
            elif tag == TAG_ALTERNATE:
                nhanh = _chon_nhanh_alternate(con)
                if nhanh is not None:
                    self._duyet(nhanh, buf)
            elif _la_thuoc_tinh_word(con):
                continue
            else:
                rid = lay_rid_placeholder(con)
                if rid is not None:
                    buf.append(self._cong_thuc(rid))
                else:
                    self._duyet(con, buf)

    # RENDER

    def _van_ban(self, text: str) -> str:
        if self.che_do == CHE_DO_HTML:
            return escape_html(text)
        return text

    def _cong_thuc(self, rid: str) -> str:
        ban_ghi = self.so_dang_ky.get(rid) if rid else None
        if self.che_do == CHE_DO_HTML:
            return self._cong_thuc_html(ban_ghi, rid)
        return self._cong_thuc_text(ban_ghi)

    @staticmethod
    def _cong_thuc_html(ban_ghi, rid: str) -> str:
        if ban_ghi is not None and ban_ghi.co_latex():
            tex = ban_ghi.latex
            # Render INLINE với \( ... \)
            return f'<span class="eq-inline" data-tex="{escape_thuoc_tinh(tex)}">\\({escape_html(tex)}\\)</span>'
        if ban_ghi is not None and ban_ghi.co_mathml():
            return f'<span class="eq-inline" data-has-mml="1">{ep_mathml_inline(ban_ghi.mathml)}</span>'
        tieu_de = rid or (ban_ghi.loi if ban_ghi is not None else '') or 'missing'
        return f'<span class="eq-inline-missing" title="{escape_thuoc_tinh(tieu_de)}">{NHAN_CONG_THUC_THIEU}</span>'

    @staticmethod
    def _cong_thuc_text(ban_ghi) -> str:
        if ban_ghi is not None and ban_ghi.co_latex():
            return f'${ban_ghi.latex}$'
        if ban_ghi is not None and ban_ghi.co_mathml():
            # Chưa dịch được sang LaTeX, để placeholder
            return TOKEN_MATHML_CHUA_DICH
        return TOKEN_CONG_THUC_KHONG_RO


def dung_html_inline(document_xml: str, so_dang_ky: dict) -> str:
    return BoDungLaiNoiDung(so_dang_ky, CHE_DO_HTML).dung(document_xml)


def dung_van_ban_thuan(document_xml: str, so_dang_ky: dict) -> str:
    return BoDungLaiNoiDung(so_dang_ky, CHE_DO_TEXT).dung(document_xml)
