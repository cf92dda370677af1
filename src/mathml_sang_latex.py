# mathml_sang_latex.py - Chuyển MathML (đầu ra của mathtype_to_mathml) → LaTeX
#
# Parser đệ quy bằng lxml, không phụ thuộc namespace (math / mml:math đều được).
#
# Cách dùng:
#   latex = mathml_sang_latex('<math><msup><mi>x</mi><mn>2</mn></msup></math>')
#   → 'x^2'

import re

from lxml import etree

from utils import loc_ky_tu, ten_cuc_bo


class LoiChuyenDoiMathML(Exception):
    # MathML không parse được hoặc không sinh ra LaTeX
    pass


# Ánh xạ toán tử / ký hiệu Unicode → LaTeX
_KY_HIEU_LATEX = {
    '×': r'\times', '·': r'\cdot', '⋅': r'\cdot', '÷': r'\div',
    '±': r'\pm', '∓': r'\mp', '−': '-',
    '≤': r'\leq', '≥': r'\geq', '≠': r'\neq', '≈': r'\approx',
    '≡': r'\equiv', '≅': r'\cong', '∝': r'\propto', '∼': r'\sim',
    '∞': r'\infty', '∂': r'\partial', '∇': r'\nabla',
    '∀': r'\forall', '∃': r'\exists', '∈': r'\in', '∉': r'\notin',
    '⊂': r'\subset', '⊃': r'\supset', '⊆': r'\subseteq', '⊇': r'\supseteq',
    '∪': r'\cup', '∩': r'\cap', '∅': r'\emptyset',
    '∫': r'\int', '∬': r'\iint', '∭': r'\iiint', '∮': r'\oint',
    '∑': r'\sum', '∏': r'\prod', '∐': r'\coprod',
    '←': r'\leftarrow', '→': r'\rightarrow', '↔': r'\leftrightarrow',
    '⇐': r'\Leftarrow', '⇒': r'\Rightarrow', '⇔': r'\Leftrightarrow',
    '↑': r'\uparrow', '↓': r'\downarrow',
    '…': r'\ldots', '⋯': r'\cdots', '⋮': r'\vdots', '⋱': r'\ddots',
    '°': r'^\circ', '′': "'", '″': "''",
    '⟨': r'\langle', '⟩': r'\rangle', '〈': r'\langle', '〉': r'\rangle',
    '⌊': r'\lfloor', '⌋': r'\rfloor', '⌈': r'\lceil', '⌉': r'\rceil',
    '‖': r'\|',
    'α': r'\alpha', 'β': r'\beta', 'γ': r'\gamma', 'δ': r'\delta',
    'ε': r'\varepsilon', 'ϵ': r'\epsilon', 'ζ': r'\zeta', 'η': r'\eta',
    'θ': r'\theta', 'ϑ': r'\vartheta', 'ι': r'\iota', 'κ': r'\kappa',
    'λ': r'\lambda', 'μ': r'\mu', 'ν': r'\nu', 'ξ': r'\xi', 'π': r'\pi',
    'ρ': r'\rho', 'σ': r'\sigma', 'ς': r'\varsigma', 'τ': r'\tau',
    'υ': r'\upsilon', 'φ': r'\varphi', 'ϕ': r'\phi', 'χ': r'\chi',
    'ψ': r'\psi', 'ω': r'\omega',
    'Γ': r'\Gamma', 'Δ': r'\Delta', 'Θ': r'\Theta', 'Λ': r'\Lambda',
    'Ξ': r'\Xi', 'Π': r'\Pi', 'Σ': r'\Sigma', 'Υ': r'\Upsilon',
    'Φ': r'\Phi', 'Ψ': r'\Psi', 'Ω': r'\Omega',
}

# Ký tự cần escape trong math mode
_KY_TU_DAC_BIET = {'%': r'\%', '&': r'\&', '#': r'\#', '$': r'\$', '{': r'\{', '}': r'\}'}

# Tên hàm chuẩn có lệnh LaTeX riêng
_TEN_HAM = {
    'sin', 'cos', 'tan', 'cot', 'sec', 'csc',
    'sinh', 'cosh', 'tanh', 'coth',
    'arcsin', 'arccos', 'arctan',
    'ln', 'log', 'lg', 'exp', 'lim', 'max', 'min', 'sup', 'inf',
    'det', 'dim', 'ker', 'deg', 'gcd', 'arg',
}

# Dấu trên (mover accent) → lệnh LaTeX
_DAU_TREN = {
    '^': r'\hat', 'ˆ': r'\hat', '̂': r'\hat',
    '~': r'\tilde', '˜': r'\tilde', '̃': r'\tilde',
    '¯': r'\bar', '‾': r'\overline', '̅': r'\bar', '_': r'\overline',
    '→': r'\vec', '⃗': r'\vec',
    '˙': r'\dot', '.': r'\dot', '¨': r'\ddot',
    'ˇ': r'\check', '˘': r'\breve',
    '⏜': r'\overparen', '⌢': r'\overparen',
    '⏞': r'\overbrace',
}

# Dấu dưới (munder accent)
_DAU_DUOI = {
    '_': r'\underline', '¯': r'\underline', '‾': r'\underline',
    '⏟': r'\underbrace',
}

_MENCLOSE = {
    'box': r'\boxed', 'roundedbox': r'\boxed', 'circle': r'\boxed',
    'updiagonalstrike': r'\cancel', 'downdiagonalstrike': r'\bcancel',
    'horizontalstrike': r'\cancel', 'top': r'\overline', 'bottom': r'\underline',
}

_NGOAC_LATEX = {
    '{': r'\{', '}': r'\}', '⟨': r'\langle', '⟩': r'\rangle',
    '〈': r'\langle', '〉': r'\rangle', '‖': r'\|',
    '⌊': r'\lfloor', '⌋': r'\rfloor', '⌈': r'\lceil', '⌉': r'\rceil',
    '': '.',
}


def _ky_tu_sang_latex(text: str) -> str:
    ket_qua = []
    for ch in text:
        if ch in _KY_HIEU_LATEX:
            ket_qua.append(_KY_HIEU_LATEX[ch] + ' ' if _KY_HIEU_LATEX[ch].startswith('\\') else _KY_HIEU_LATEX[ch])
        elif ch in _KY_TU_DAC_BIET:
            ket_qua.append(_KY_TU_DAC_BIET[ch])
        elif ch == '\u00a0':
            ket_qua.append('~')
        elif ch in ('\u2061', '\u2062', '\u2063', '\u200b'):
            # function application / invisible times
            continue
        else:
            ket_qua.append(ch)
    return ''.join(ket_qua)


def _ngoac(ch: str) -> str:
    ch = (ch or '').strip()
    return _NGOAC_LATEX.get(ch, ch)


def _nhom(latex: str) -> str:
    # Bọc {} khi cần làm đối số của ^ _
    latex = latex.strip()
    if len(latex) == 1:
        return latex
    return '{' + latex + '}'


class BoChuyenMathMLSangLatex:
    # Duyệt cây MathML, mỗi tag một nhánh xử lý

    def chuyen(self, mathml: str) -> str:
        if not mathml or not mathml.strip():
            raise LoiChuyenDoiMathML("MathML rỗng")

        # Xóa namespace prefixes để parse dễ hơn
        clean = re.sub(r'<(/?)mml:', r'<\1', mathml.strip())
        clean = re.sub(r'\s+xmlns:[a-zA-Z]+="[^"]*"', '', clean)
        parser = etree.XMLParser(resolve_entities=False, no_network=True, recover=False)
        try:
            root = etree.fromstring(clean.encode('utf-8'), parser)
        except etree.XMLSyntaxError as loi:
            raise LoiChuyenDoiMathML(f"MathML không hợp lệ: {loi}") from loi

        latex = self._don_dep(self._node(root))
        if not latex:
            raise LoiChuyenDoiMathML("Không sinh được LaTeX từ MathML")
        return latex

    # TIỆN ÍCH

    @staticmethod
    def _don_dep(latex: str) -> str:
        latex = re.sub(r'\s+', ' ', latex).strip()
        # Bỏ khoảng trắng thừa trước ^ _ } và sau {
        latex = re.sub(r'(?<!\\)\s+([\^_}])', r'\1', latex)
        latex = re.sub(r'{\s+', '{', latex)
        return latex

    def _con(self, node) -> list:
        return [c for c in node if ten_cuc_bo(c)]

    def _noi(self, node) -> str:
        return ''.join(self._node(c) for c in self._con(node))

    def _doi_so(self, node, idx: int) -> str:
        con = self._con(node)
        if idx < len(con):
            return self._node(con[idx])
        return ''

    # DUYỆT CÂY

    def _node(self, node) -> str:
        tag = ten_cuc_bo(node)

        if tag in ('math', 'mrow', 'mstyle', 'mpadded', 'merror', 'mtd', 'none'):
            return self._noi(node)
        elif tag == 'semantics':
            # Chỉ lấy nhánh trình bày, bỏ annotation
            con = self._con(node)
            return self._node(con[0]) if con else ''
        elif tag in ('annotation', 'annotation-xml', 'mphantom', 'mprescripts'):
            return ''
        elif tag == 'mi':
            text = (node.text or '').strip()
            if text in _TEN_HAM:
                return '\\' + text + ' '
            if len(text) > 1 and text.isalpha() and node.get('mathvariant') != 'italic':
                return r'\mathrm{' + text + '}'
            latex = _ky_tu_sang_latex(text)
            if node.get('mathvariant') == 'bold' and latex:
                return r'\mathbf{' + latex + '}'
            return latex
        elif tag == 'mn':
            return _ky_tu_sang_latex((node.text or '').strip())
        elif tag == 'mo':
            text = (node.text or '').strip()
            if text in _TEN_HAM:
                return '\\' + text + ' '
            return _ky_tu_sang_latex(text)
        elif tag in ('mtext', 'ms'):
            text = node.text or ''
            if not text.strip():
                # Khoảng trắng thuần (kể cả NBSP) → dấu cách không ngắt
                return '~' if text else ''
            return r'\text{' + loc_ky_tu(text) + '}'
        elif tag == 'mspace':
            return r'\;'
        elif tag == 'msup':
            return _nhom(self._doi_so(node, 0)) + '^' + _nhom(self._doi_so(node, 1))
        elif tag == 'msub':
            return _nhom(self._doi_so(node, 0)) + '_' + _nhom(self._doi_so(node, 1))
        elif tag == 'msubsup':
            return (_nhom(self._doi_so(node, 0)) + '_' + _nhom(self._doi_so(node, 1))
                    + '^' + _nhom(self._doi_so(node, 2)))
        elif tag == 'mfrac':
            tu = self._doi_so(node, 0)
            mau = self._doi_so(node, 1)
            if node.get('linethickness') in ('0', '0px', '0pt'):
                return r'\genfrac{}{}{0pt}{}{' + tu + '}{' + mau + '}'
            return r'\frac{' + tu + '}{' + mau + '}'
        elif tag == 'msqrt':
            return r'\sqrt{' + self._noi(node) + '}'
        elif tag == 'mroot':
            return r'\sqrt[' + self._doi_so(node, 1) + ']{' + self._doi_so(node, 0) + '}'
        elif tag == 'mover':
            return self._mover(node)
        elif tag == 'munder':
            return self._munder(node)
        elif tag == 'munderover':
            co_so = self._doi_so(node, 0)
            return (_nhom(co_so) if not co_so.strip().startswith('\\') else co_so.strip()) \
                + '_' + _nhom(self._doi_so(node, 1)) + '^' + _nhom(self._doi_so(node, 2)) + ' '
        elif tag == 'mfenced':
            return self._mfenced(node)
        elif tag == 'menclose':
            ky_hieu = (node.get('notation') or 'box').split()[0]
            lenh = _MENCLOSE.get(ky_hieu, r'\boxed')
            return lenh + '{' + self._noi(node) + '}'
        elif tag == 'mtable':
            return self._mtable(node)
        elif tag == 'mtr' or tag == 'mlabeledtr':
            return ' & '.join(self._node(td) for td in self._con(node))
        elif tag == 'mmultiscripts':
            return self._mmultiscripts(node)

        # Fallback: tag lạ → ghép nội dung con
        return self._noi(node)

    def _mover(self, node) -> str:
        co_so = self._doi_so(node, 0)
        con = self._con(node)
        tren_node = con[1] if len(con) > 1 else None
        tren_text = (tren_node.text or '').strip() if tren_node is not None else ''
        if tren_node is not None and ten_cuc_bo(tren_node) == 'mo' and tren_text in _DAU_TREN:
            return _DAU_TREN[tren_text] + '{' + co_so + '}'
        tren = self._doi_so(node, 1)
        if co_so.strip().startswith(('\\sum', '\\prod', '\\int', '\\lim', '\\coprod', '\\bigcup', '\\bigcap')):
            return co_so.strip() + '^' + _nhom(tren) + ' '
        return r'\overset{' + tren + '}{' + co_so + '}'

    def _munder(self, node) -> str:
        co_so = self._doi_so(node, 0)
        con = self._con(node)
        duoi_node = con[1] if len(con) > 1 else None
        duoi_text = (duoi_node.text or '').strip() if duoi_node is not None else ''
        if duoi_node is not None and ten_cuc_bo(duoi_node) == 'mo' and duoi_text in _DAU_DUOI:
            return _DAU_DUOI[duoi_text] + '{' + co_so + '}'
        duoi = self._doi_so(node, 1)
        if co_so.strip().startswith(('\\sum', '\\prod', '\\int', '\\lim', '\\coprod', '\\bigcup', '\\bigcap')):
            return co_so.strip() + '_' + _nhom(duoi) + ' '
        return r'\underset{' + duoi + '}{' + co_so + '}'

    def _mfenced(self, node) -> str:
        mo = node.get('open', '(')
        dong = node.get('close', ')')
        phan_cach = node.get('separators', ',').strip() or ','
        phan_tu = [self._node(c) for c in self._con(node)]
        noi_dung = ''
        for i, p in enumerate(phan_tu):
            if i > 0:
                noi_dung += phan_cach[min(i - 1, len(phan_cach) - 1)]
            noi_dung += p
        return r'\left' + _ngoac(mo) + ' ' + noi_dung + r' \right' + _ngoac(dong)

    def _mtable(self, node) -> str:
        hang = []
        for child in self._con(node):
            if ten_cuc_bo(child) in ('mtr', 'mlabeledtr'):
                hang.append(self._node(child))
        return r'\begin{matrix} ' + r' \\ '.join(hang) + r' \end{matrix}'

    def _mmultiscripts(self, node) -> str:
        con = self._con(node)
        if not con:
            return ''
        ket_qua = _nhom(self._node(con[0]))
        # Chỉ lấy cặp sub/sup sau base, bỏ prescripts
        sau = []
        for c in con[1:]:
            if ten_cuc_bo(c) == 'mprescripts':
                break
            sau.append(c)
        for i in range(0, len(sau) - 1, 2):
            duoi = self._node(sau[i])
            tren = self._node(sau[i + 1])
            if duoi:
                ket_qua += '_' + _nhom(duoi)
            if tren:
                ket_qua += '^' + _nhom(tren)
        return ket_qua


_bo_chuyen_mac_dinh = BoChuyenMathMLSangLatex()


def mathml_sang_latex(mathml: str) -> str:
    # Hàm chính: MathML string → LaTeX; lỗi → LoiChuyenDoiMathML
    return _bo_chuyen_mac_dinh.chuyen(mathml)
