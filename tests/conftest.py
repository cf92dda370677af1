"""
Pytest fixtures cho Word2Math: dựng document.xml / .rels / gói .docx giả và converter giả.
"""
import io
import os
import sys
import zipfile
from pathlib import Path

import pytest

# Thêm src và backend vào path
goc = Path(__file__).parent.parent
sys.path.insert(0, str(goc / "src"))
sys.path.insert(0, str(goc / "backend"))

from chuyen_doi_cong_thuc import KetQuaBuoc  # noqa: E402
from config import LOI_RUBY  # noqa: E402


KHAI_BAO_NAMESPACE = (
    'xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main" '
    'xmlns:o="urn:schemas-microsoft-com:office:office" '
    'xmlns:v="urn:schemas-microsoft-com:vml" '
    'xmlns:r="http://schemas.openxmlformats.org/officeDocument/2006/relationships" '
    'xmlns:mc="http://schemas.openxmlformats.org/markup-compatibility/2006"'
)

MATHML_X_BINH_PHUONG = '<math xmlns="http://www.w3.org/1998/Math/MathML"><msup><mi>x</mi><mn>2</mn></msup></math>'


def tao_document_xml(noi_dung_body: str) -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        f'<w:document {KHAI_BAO_NAMESPACE}><w:body>{noi_dung_body}</w:body></w:document>'
    )


def doan_van(*runs: str) -> str:
    return '<w:p>' + ''.join(runs) + '</w:p>'


def run_text(text: str) -> str:
    return f'<w:r><w:t xml:space="preserve">{text}</w:t></w:r>'


def run_ole(rid: str, rid_anh: str = 'rIdImg', progid: str = 'Equation.DSMT4') -> str:
    return (
        '<w:r><w:object>'
        f'<v:shape id="_x0000_i1025" type="#_x0000_t75"><v:imagedata r:id="{rid_anh}" o:title=""/></v:shape>'
        f'<o:OLEObject Type="Embed" ProgID="{progid}" ShapeID="_x0000_i1025" DrawAspect="Content" r:id="{rid}"/>'
        '</w:object></w:r>'
    )


def tao_rels_xml(*quan_he) -> str:
    # quan_he: (Id, Target)
    dong = ''.join(
        f'<Relationship Id="{rid}" '
        'Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/oleObject" '
        f'Target="{target}"/>'
        for rid, target in quan_he
    )
    return (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">'
        f'{dong}</Relationships>'
    )


def tao_docx(document_xml: str, rels_xml: str = None, file_nhung: dict = None) -> bytes:
    # Gói .docx tối giản (đủ cho zipfile, mammoth và python-docx)
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, 'w', zipfile.ZIP_DEFLATED) as zf:
        zf.writestr('[Content_Types].xml', (
            '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
            '<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
            '<Default Extension="rels" ContentType="application/vnd.openxmlformats-package.relationships+xml"/>'
            '<Default Extension="xml" ContentType="application/xml"/>'
            '<Default Extension="bin" ContentType="application/vnd.openxmlformats-officedocument.oleObject"/>'
            '<Override PartName="/word/document.xml" '
            'ContentType="application/vnd.openxmlformats-officedocument.wordprocessingml.document.main+xml"/>'
            '</Types>'
        ))
        zf.writestr('_rels/.rels', (
            '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
            '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">'
            '<Relationship Id="rId1" '
            'Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/officeDocument" '
            'Target="word/document.xml"/>'
            '</Relationships>'
        ))
        zf.writestr('word/document.xml', document_xml)
        if rels_xml is not None:
            zf.writestr('word/_rels/document.xml.rels', rels_xml)
        for ten, du_lieu in (file_nhung or {}).items():
            zf.writestr(ten, du_lieu)
    return buf.getvalue()


class BoChuyenGia:
    """Converter giả: đọc bytes của file tạm, tra bảng → MathML.

    Ghi lại đường dẫn đã nhận để test kiểm tra file tạm tồn tại lúc gọi và bị xóa sau đó.
    """

    def __init__(self, bang: dict = None):
        self.bang = bang or {}
        self.cac_duong_dan = []
        self.file_ton_tai_khi_goi = []

    def __call__(self, duong_dan: str) -> KetQuaBuoc:
        self.cac_duong_dan.append(duong_dan)
        self.file_ton_tai_khi_goi.append(os.path.exists(duong_dan))
        with open(duong_dan, 'rb') as f:
            du_lieu = f.read()
        ket_qua = self.bang.get(du_lieu)
        if ket_qua is None:
            return KetQuaBuoc(loi=LOI_RUBY, chi_tiet_loi='unsupported MTEF')
        return KetQuaBuoc(gia_tri=ket_qua)


@pytest.fixture
def bo_chuyen_gia():
    return BoChuyenGia({b'OLE-X2': MATHML_X_BINH_PHUONG})


@pytest.fixture
def docx_mot_cong_thuc():
    """Tài liệu: 'Cho ' + công thức rId7 + ' là số dương.'"""
    document_xml = tao_document_xml(
        doan_van(run_text('Cho '), run_ole('rId7'), run_text(' là số dương.'))
    )
    rels_xml = tao_rels_xml(('rId7', 'embeddings/oleObject1.bin'), ('rIdImg', 'media/image1.wmf'))
    return tao_docx(document_xml, rels_xml, {'word/embeddings/oleObject1.bin': b'OLE-X2'})


@pytest.fixture
def test_client(bo_chuyen_gia):
    """FastAPI test client với converter giả."""
    from fastapi.testclient import TestClient
    from config import CauHinhMayChu
    from chuyen_doi import ChuyenDoiCongThucWord
    from main import tao_app

    cau_hinh = CauHinhMayChu(dung_luong_toi_da_mb=1)
    app = tao_app(cau_hinh, ChuyenDoiCongThucWord(cau_hinh, bo_chuyen_mathml=bo_chuyen_gia))
    return TestClient(app)
