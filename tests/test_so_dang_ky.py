"""
Tests cho sổ đăng ký công thức và liệt kê stream OLE
"""
import pytest

import so_dang_ky
from conftest import MATHML_X_BINH_PHUONG
from config import LOI_RUBY, SO_STREAM_TOI_DA
from so_dang_ky import BanGhiCongThuc, liet_ke_stream_ole, xay_dung_so_dang_ky


class TestXayDungSoDangKy:
    """Chỉ rId có đường dẫn và bytes thực sự mới được chuyển đổi"""

    def test_ghep_day_du(self, bo_chuyen_gia):
        so = xay_dung_so_dang_ky(
            ['rId7'],
            {'rId7': 'word/embeddings/oleObject1.bin'},
            {'rId7': 'Equation.DSMT4'},
            {'word/embeddings/oleObject1.bin': b'OLE-X2'},
            bo_chuyen_gia,
        )
        ban_ghi = so['rId7']
        assert ban_ghi.ten == 'oleObject1.bin'
        assert ban_ghi.progid == 'Equation.DSMT4'
        assert ban_ghi.mathml == MATHML_X_BINH_PHUONG
        assert ban_ghi.latex == 'x^2'
        assert ban_ghi.loi == ''
        # bytes không phải Compound File → không có stream
        assert ban_ghi.streams == ()

    def test_bo_qua_rid_khong_tra_duoc(self, bo_chuyen_gia):
        so = xay_dung_so_dang_ky(
            ['rIdImg', 'rId8', 'rId7'],
            {'rId7': 'word/embeddings/oleObject1.bin', 'rId8': 'word/embeddings/oleObject2.bin'},
            {},
            {'word/embeddings/oleObject1.bin': b'OLE-X2'},
            bo_chuyen_gia,
        )
        assert list(so) == ['rId7']
        assert so['rId7'].progid == ''
        assert len(bo_chuyen_gia.cac_duong_dan) == 1

    def test_chuyen_doi_mot_lan_moi_rid(self, bo_chuyen_gia):
        xay_dung_so_dang_ky(
            ['rId7', 'rId7'],
            {'rId7': 'word/embeddings/oleObject1.bin'},
            {},
            {'word/embeddings/oleObject1.bin': b'OLE-X2'},
            bo_chuyen_gia,
        )
        assert len(bo_chuyen_gia.cac_duong_dan) == 1

    def test_giu_loi_trong_ban_ghi(self, bo_chuyen_gia):
        so = xay_dung_so_dang_ky(
            ['rId1'],
            {'rId1': 'word/embeddings/oleObject1.bin'},
            {},
            {'word/embeddings/oleObject1.bin': b'khac'},
            bo_chuyen_gia,
        )
        assert so['rId1'].loi == LOI_RUBY
        assert not so['rId1'].co_mathml()
        assert not so['rId1'].co_latex()


class TestBanGhiCongThuc:

    def test_khong_sua_duoc(self):
        ban_ghi = BanGhiCongThuc('rId1', 'word/embeddings/a.bin', 'a.bin', latex='x')
        with pytest.raises(AttributeError):
            ban_ghi.latex = 'y'

    def test_sang_dict(self):
        ban_ghi = BanGhiCongThuc('rId1', 'word/embeddings/a.bin', 'a.bin', progid='Equation.3',
                                 mathml='<math/>', streams=({'name': 'Equation Native', 'size': 12},))
        assert ban_ghi.sang_dict() == {
            'rId': 'rId1',
            'embPath': 'word/embeddings/a.bin',
            'name': 'a.bin',
            'progId': 'Equation.3',
            'mathml': '<math/>',
            'latex': '',
            'error': '',
            'error_detail': '',
            'streams': [{'name': 'Equation Native', 'size': 12}],
        }

    def test_stream_trong_so_bi_gioi_han(self, monkeypatch, bo_chuyen_gia):
        monkeypatch.setattr(so_dang_ky.olefile, 'OleFileIO', lambda f: _OleGia(SO_STREAM_TOI_DA + 5))
        so = xay_dung_so_dang_ky(
            ['rId7'],
            {'rId7': 'word/embeddings/oleObject1.bin'},
            {},
            {'word/embeddings/oleObject1.bin': b'OLE-X2'},
            bo_chuyen_gia,
        )
        assert isinstance(so['rId7'].streams, tuple)
        assert len(so['rId7'].streams) == SO_STREAM_TOI_DA


class _OleGia:
    def __init__(self, so_stream):
        self.so_stream = so_stream

    def __enter__(self):
        return self

    def __exit__(self, *args):
        return False

    def listdir(self, streams=True, storages=False):
        return [['Storage', f'stream{i}'] for i in range(self.so_stream)]

    def get_size(self, duong_dan):
        return 7


class TestLietKeStream:

    def test_bytes_khong_hop_le(self):
        assert liet_ke_stream_ole(b'khong phai OLE') == []
        assert liet_ke_stream_ole(b'') == []

    def test_ten_stream_va_gioi_han(self, monkeypatch):
        monkeypatch.setattr(so_dang_ky.olefile, 'OleFileIO', lambda f: _OleGia(SO_STREAM_TOI_DA + 10))
        danh_sach = liet_ke_stream_ole(b'x')
        assert len(danh_sach) == SO_STREAM_TOI_DA
        assert danh_sach[0] == {'name': 'Storage/stream0', 'size': 7}
