import sys
import uuid
import time
from pathlib import Path
from datetime import datetime

from fastapi import FastAPI, File, UploadFile, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from config import CauHinhMayChu
from chuyen_doi import ChuyenDoiCongThucWord
from goi_docx import LoiTaiLieuKhongHopLe
from utils import in_log_loi


def tao_app(cau_hinh: CauHinhMayChu = None, bo_chuyen_doi: ChuyenDoiCongThucWord = None) -> FastAPI:
    # Tạo FastAPI app với cấu hình truyền vào (mặc định đọc từ biến môi trường)
    cau_hinh = cau_hinh or CauHinhMayChu.tu_bien_moi_truong()

    app = FastAPI(title="Word2Math API", version="1.0.0")
    app.state.cau_hinh = cau_hinh
    app.state.bo_chuyen_doi = bo_chuyen_doi or ChuyenDoiCongThucWord(cau_hinh)

    # Cấu hình CORS - danh sách rỗng thì cho phép mọi origin
    cho_phep_tat_ca = cau_hinh.cho_phep_moi_nguon()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if cho_phep_tat_ca else cau_hinh.nguon_cho_phep,
        allow_credentials=False if cho_phep_tat_ca else True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    def doc_api():
        # Endpoint gốc - hướng dẫn sử dụng API
        return {
            "message": "Word2Math API đang hoạt động",
            "endpoints": {
                "/convert": "POST - Upload file .docx (field 'file'), trả công thức OLE + HTML/text chèn công thức",
                "/health": "GET - Health check",
                "/docs": "Xem Swagger documentation"
            }
        }

    @app.get("/health")
    def kiem_tra_suc_khoe():
        # Health check endpoint
        return {
            "ok": True,
            "timestamp": datetime.now().isoformat()
        }

    @app.post("/convert")
    async def chuyen_doi_file(request: Request, file: UploadFile | None = File(None)):
        # Endpoint chuyển đổi: .docx → công thức (MathML/LaTeX) + HTML inline + plain text
        if file is None:
            return JSONResponse(status_code=400, content={"error": "No file uploaded"})

        cau_hinh_app = request.app.state.cau_hinh
        gioi_han = cau_hinh_app.dung_luong_toi_da_byte
        # Kiểm tra kích thước khai báo trước, sau đó chỉ đọc tối đa gioi_han + 1 byte
        qua_lon = file.size is not None and file.size > gioi_han
        contents = b'' if qua_lon else await file.read(gioi_han + 1)
        if qua_lon or len(contents) > gioi_han:
            return JSONResponse(
                status_code=413,
                content={"error": f"File quá lớn. Kích thước tối đa {cau_hinh_app.dung_luong_toi_da_mb}MB"}
            )

        job_id = str(uuid.uuid4())
        print(f"[JOB {job_id}] Nhận yêu cầu chuyển đổi: {file.filename} ({len(contents)} bytes)")

        try:
            thoi_gian_bat_dau = time.time()
            bo_chuyen_doi = request.app.state.bo_chuyen_doi
            # Converter ngoài là lời gọi chặn → chạy trong threadpool
            ket_qua = await run_in_threadpool(bo_chuyen_doi.chuyen_doi, contents)
            thoi_gian_xu_ly = max(0.0, time.time() - thoi_gian_bat_dau)
            print(f"[JOB {job_id}] Hoàn tất: {ket_qua['count']} công thức, {thoi_gian_xu_ly:.2f}s")
            return JSONResponse(status_code=200, content=ket_qua)
        except LoiTaiLieuKhongHopLe as loi:
            in_log_loi(f"File không hợp lệ job_id={job_id}", loi)
            return JSONResponse(status_code=400, content={"error": str(loi)})
        except Exception as loi:
            in_log_loi(f"Lỗi chuyển đổi job_id={job_id}", loi)
            thong_diep_loi = str(loi).strip() or "File Word không hợp lệ hoặc không thể xử lý"
            return JSONResponse(status_code=500, content={"error": thong_diep_loi})

    return app


app = tao_app()


if __name__ == "__main__":
    # Chạy server với uvicorn
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=app.state.cau_hinh.cong,
    )
