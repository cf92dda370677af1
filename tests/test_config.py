"""
Tests cho cấu hình đọc từ biến môi trường
"""
import pytest

from config import CauHinhMayChu, LENH_MT2MML_MAC_DINH

BIEN_MOI_TRUONG = ('PORT', 'ALLOWED_ORIGINS', 'MAX_UPLOAD_MB', 'MT2MML_CMD', 'MT2MML_TIMEOUT')


@pytest.fixture(autouse=True)
def xoa_bien_moi_truong(monkeypatch):
    for ten in BIEN_MOI_TRUONG:
        monkeypatch.delenv(ten, raising=False)


class TestCauHinhMayChu:

    def test_mac_dinh(self):
        cau_hinh = CauHinhMayChu.tu_bien_moi_truong()
        assert cau_hinh.cong == 8080
        assert cau_hinh.cho_phep_moi_nguon()
        assert cau_hinh.dung_luong_toi_da_byte == 15 * 1024 * 1024
        assert cau_hinh.lenh_mt2mml == LENH_MT2MML_MAC_DINH
        assert cau_hinh.thoi_gian_cho_mt2mml is None

    def test_doc_bien_moi_truong(self, monkeypatch):
        monkeypatch.setenv('PORT', '9000')
        monkeypatch.setenv('ALLOWED_ORIGINS', 'http://a.vn, http://b.vn,')
        monkeypatch.setenv('MAX_UPLOAD_MB', '2')
        monkeypatch.setenv('MT2MML_CMD', 'bundle exec ruby "/opt/mt 2 mml.rb"')
        monkeypatch.setenv('MT2MML_TIMEOUT', '30')

        cau_hinh = CauHinhMayChu.tu_bien_moi_truong()
        assert cau_hinh.cong == 9000
        assert cau_hinh.nguon_cho_phep == ['http://a.vn', 'http://b.vn']
        assert not cau_hinh.cho_phep_moi_nguon()
        assert cau_hinh.dung_luong_toi_da_byte == 2 * 1024 * 1024
        assert cau_hinh.lenh_mt2mml == ['bundle', 'exec', 'ruby', '/opt/mt 2 mml.rb']
        assert cau_hinh.thoi_gian_cho_mt2mml == 30.0

    def test_gia_tri_sai_dung_mac_dinh(self, monkeypatch):
        monkeypatch.setenv('PORT', 'abc')
        monkeypatch.setenv('MAX_UPLOAD_MB', '0')
        monkeypatch.setenv('MT2MML_TIMEOUT', '-1')

        cau_hinh = CauHinhMayChu.tu_bien_moi_truong()
        assert cau_hinh.cong == 8080
        assert cau_hinh.dung_luong_toi_da_mb == 1
        assert cau_hinh.thoi_gian_cho_mt2mml is None
