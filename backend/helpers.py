# helpers.py
import logging
import os
from typing import Optional

from fastapi import HTTPException, UploadFile

from config import MAX_UPLOAD_BYTES

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"
CHUNK_SIZE = 1024 * 1024


# ---------------- Upload validation ----------------
def validate_pdf_upload(file: Optional[UploadFile]) -> UploadFile:
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="Tidak ada file yang diunggah")
    if file.content_type != PDF_MIME_TYPE:
        raise HTTPException(status_code=400, detail="Hanya file PDF yang diizinkan!")
    return file


def resolve_upload_filename(file: UploadFile, requested: Optional[str] = None) -> str:
    """Use the caller's name if given, else the uploaded file's own name. Existing files are overwritten."""
    name = (requested or "").strip() or file.filename
    # Keep the file inside the PDF directory
    name = os.path.basename(name.replace("\\", "/"))
    if not name:
        raise HTTPException(status_code=400, detail="Nama file tidak valid")
    return name


async def read_limited(file: UploadFile, limit: Optional[int] = None) -> bytes:
    limit = limit or MAX_UPLOAD_BYTES
    data = bytearray()
    while True:
        chunk = await file.read(CHUNK_SIZE)
        if not chunk:
            break
        data.extend(chunk)
        if len(data) > limit:
            raise HTTPException(
                status_code=400,
                detail=f"Ukuran file melebihi batas {limit // (1024 * 1024)}MB",
            )
    return bytes(data)


# ---------------- Upload storage ----------------
async def save_pdf_upload(file: Optional[UploadFile], pdf_dir: str, requested_name: Optional[str] = None) -> dict:
    file = validate_pdf_upload(file)
    filename = resolve_upload_filename(file, requested_name)
    content = await read_limited(file)

    os.makedirs(pdf_dir, exist_ok=True)
    file_location = os.path.join(pdf_dir, filename)
    with open(file_location, "wb") as f:
        f.write(content)

    logger.info("Stored upload %s (%d bytes)", file_location, len(content))
    return {
        "message": "File berhasil diunggah",
        "filename": filename,
        "path": f"/pdf/{filename}",
    }
