# so_dang_ky.py - Sổ đăng ký công thức: rId → BanGhiCongThuc
#
# Mỗi rId có đường dẫn embedding và bytes thực sự → chuyển đổi đúng một lần.
# rId không tra được (không có trong rels hoặc thiếu file .bin) → không có mặt trong sổ,
# khi render sẽ đi nhánh "công thức thiếu".

import io
import os
from dataclasses import dataclass

import olefile

from config import SO_STREAM_TOI_DA
from chuyen_doi_cong_thuc import chuyen_ole_sang_mathml_latex
from utils import in_thong_tin


@dataclass(frozen=True)
class BanGhiCongThuc:
    """Một công thức đã xử lý. Tạo một lần, không sửa sau khi tạo.

    Thuộc tính giữ đúng tên khóa JSON trả về cho frontend
    (rId, embPath, name, progId, mathml, latex, error, error_detail, streams).
    """

    rid: str
    duong_dan: str
    ten: str
    progid: str = ''
    mathml: str = ''
    latex: str = ''
    loi: str = ''
    chi_tiet_loi: str = ''
    # Tối đa SO_STREAM_TOI_DA phần tử {name, size}
    streams: tuple = ()

    def co_latex(self) -> bool:
        return bool(self.latex.strip())

    def co_mathml(self) -> bool:
        return bool(self.mathml.strip())

    def sang_dict(self) -> dict:
        return {
            'rId': self.rid,
            'embPath': self.duong_dan,
            'name': self.ten,
            'progId': self.progid,
            'mathml': self.mathml,
            'latex': self.latex,
            'error': self.loi,
            'error_detail': self.chi_tiet_loi,
            'streams': [dict(s) for s in self.streams],
        }


def liet_ke_stream_ole(du_lieu: bytes) -> list:
    # Debug: liệt kê stream trong OLE Compound File (tối đa 30), lỗi → []
    try:
        with olefile.OleFileIO(io.BytesIO(du_lieu)) as ole:
            danh_sach = []
            for duong_dan in ole.listdir(streams=True, storages=False):
                danh_sach.append({
                    'name': '/'.join(duong_dan),
                    'size': ole.get_size(duong_dan),
                })
                if len(danh_sach) >= SO_STREAM_TOI_DA:
                    break
            return danh_sach
    except Exception:
        return []


def xay_dung_so_dang_ky(danh_sach_rid: list, anh_xa_embedding: dict, anh_xa_progid: dict,
                        file_nhung: dict, bo_chuyen_mathml=None, bo_chuyen_latex=None) -> dict:
    # Ghép kết quả chuyển đổi của từng rId thành sổ {rId: BanGhiCongThuc}, giữ thứ tự danh_sach_rid
    so_dang_ky = {}
    for rid in danh_sach_rid:
        if rid in so_dang_ky:
            continue
        duong_dan = anh_xa_embedding.get(rid)
        if not duong_dan:
            continue
        du_lieu = file_nhung.get(duong_dan)
        if not du_lieu:
            continue

        ten = os.path.basename(duong_dan)
        ket_qua = chuyen_ole_sang_mathml_latex(du_lieu, ten, bo_chuyen_mathml, bo_chuyen_latex)
        if ket_qua.loi:
            in_thong_tin(f"{rid} ({ten}): {ket_qua.loi}")

        so_dang_ky[rid] = BanGhiCongThuc(
            rid=rid,
            duong_dan=duong_dan,
            ten=ten,
            progid=anh_xa_progid.get(rid, ''),
            mathml=ket_qua.mathml,
            latex=ket_qua.latex,
            loi=ket_qua.loi,
            chi_tiet_loi=ket_qua.chi_tiet_loi,
            streams=tuple(liet_ke_stream_ole(du_lieu)),
        )
    return so_dang_ky
