import logging
import os
import re
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, File, Form, HTTPException, Query, Request, Response, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import SESSION_COOKIE_NAME, SESSION_MAX_AGE, Settings
from helpers import save_pdf_upload
from json_store import MaterialStore, StoreReadError
from models import SessionRecord
from schemas import LoginRequest, MaterialCreate, MaterialUpdate
from security import verify_credentials
from sessions import SessionStore

logger = logging.getLogger(__name__)

NOT_FOUND = "Materi tidak ditemukan"
UNAUTHORIZED = "Unauthorized. Please login first."

router = APIRouter()


# ----------------- Dependencies -----------------
def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> MaterialStore:
    return request.app.state.store


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.sessions


def get_current_session(
    request: Request, sessions: SessionStore = Depends(get_session_store)
) -> Optional[SessionRecord]:
    return sessions.get(request.cookies.get(SESSION_COOKIE_NAME))


def require_auth(session: Optional[SessionRecord] = Depends(get_current_session)) -> SessionRecord:
    if session is None or not session.is_authenticated:
        raise HTTPException(status_code=401, detail=UNAUTHORIZED)
    return session


def parse_material_id(raw: str) -> Optional[int]:
    """Read the leading integer of a path segment ("12abc" -> 12); None if there isn't one."""
    match = re.match(r"\s*([+-]?\d+)", raw)
    return int(match.group(1)) if match else None


# ----------------- Static Files -----------------
class PublicFiles(StaticFiles):
    """StaticFiles that never serves dotfiles (.env, .git, ...) or the given protected pages."""

    def __init__(self, *args, protected: tuple = (), **kwargs):
        super().__init__(*args, **kwargs)
        self.protected = {name.lower() for name in protected}

    async def get_response(self, path: str, scope):
        parts = [p for p in path.replace("\\", "/").split("/") if p not in ("", ".")]
        if any(p.startswith(".") for p in parts) or "/".join(parts).lower() in self.protected:
            raise HTTPException(status_code=404, detail="Not Found")
        return await super().get_response(path, scope)


# ----------------- Pages -----------------
@router.get("/", include_in_schema=False)
def index_page(settings: Settings = Depends(get_settings)):
    index_path = os.path.join(settings.site_dir, "index.html")
    if not os.path.exists(index_path):
        return PlainTextResponse("index.html not found", status_code=404)
    return FileResponse(index_path)


@router.get("/admin.html", include_in_schema=False)
@router.get("/admin.html/", include_in_schema=False)
def admin_page(
    settings: Settings = Depends(get_settings),
    session: Optional[SessionRecord] = Depends(get_current_session),
):
    if session is None or not session.is_authenticated:
        return RedirectResponse("/index.html?login=required", status_code=302)
    admin_path = os.path.join(settings.site_dir, "admin.html")
    if not os.path.exists(admin_path):
        raise HTTPException(status_code=404, detail="admin.html not found")
    return FileResponse(admin_path)


# ----------------- Material Endpoints -----------------
@router.get("/api/materials")
def list_materials(store: MaterialStore = Depends(get_store)):
    try:
        return store.list_materials()
    except Exception as e:
        logger.exception("Failed to read materials: %s", e)
        raise HTTPException(status_code=500, detail="Gagal membaca data materi")


@router.get("/api/materials/{material_id}")
def get_material(material_id: str, store: MaterialStore = Depends(get_store)):
    mid = parse_material_id(material_id)
    material = store.get(mid) if mid is not None else None
    if not material:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return material


@router.post("/api/materials", status_code=201, dependencies=[Depends(require_auth)])
def create_material(payload: MaterialCreate, store: MaterialStore = Depends(get_store)):
    try:
        material = store.create(payload.model_dump())
    except (StoreReadError, OSError) as e:
        logger.exception("Failed to create material: %s", e)
        raise HTTPException(status_code=500, detail="Gagal membuat materi baru")
    logger.info("Created material %s", material["id"])
    return material


@router.put("/api/materials/{material_id}", dependencies=[Depends(require_auth)])
def update_material(material_id: str, payload: MaterialUpdate, store: MaterialStore = Depends(get_store)):
    mid = parse_material_id(material_id)
    if mid is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    try:
        material = store.update(mid, payload.model_dump(exclude_unset=True))
    except (StoreReadError, OSError) as e:
        logger.exception("Failed to update material %s: %s", mid, e)
        raise HTTPException(status_code=500, detail="Gagal memperbarui materi")
    if material is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return material


@router.delete("/api/materials/{material_id}", dependencies=[Depends(require_auth)])
def delete_material(
    material_id: str,
    deleteFile: Optional[str] = Query(None),
    store: MaterialStore = Depends(get_store),
):
    mid = parse_material_id(material_id)
    if mid is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    try:
        removed = store.delete(mid, also_delete_file=deleteFile == "true")
    except (StoreReadError, OSError) as e:
        logger.exception("Failed to delete material %s: %s", mid, e)
        raise HTTPException(status_code=500, detail="Gagal menghapus materi")
    if removed is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    logger.info("Deleted material %s (deleteFile=%s)", mid, deleteFile)
    return {"message": "Materi berhasil dihapus"}


@router.post("/api/upload", dependencies=[Depends(require_auth)])
async def upload_pdf(
    pdf: Optional[UploadFile] = File(None),
    filename: Optional[str] = Form(None),
    settings: Settings = Depends(get_settings),
):
    try:
        return await save_pdf_upload(pdf, settings.pdf_dir, filename)
    except OSError as e:
        logger.exception("Upload failed: %s", e)
        raise HTTPException(status_code=500, detail=str(e) or "Gagal mengunggah file")


# ----------------- Auth Endpoints -----------------
@router.post("/api/login")
def login(
    request: Request,
    response: Response,
    payload: Optional[LoginRequest] = None,
    settings: Settings = Depends(get_settings),
    sessions: SessionStore = Depends(get_session_store),
):
    username = ((payload.username if payload else None) or "").strip()
    password = (payload.password if payload else None) or ""
    if not username or not password:
        raise HTTPException(
            status_code=400,
            detail={"success": False, "error": "Username dan password harus diisi"},
        )

    logger.info("Login attempt for %r", username)
    if not verify_credentials(username, password, settings.admin_username, settings.admin_password_hash):
        logger.warning("Invalid credentials for %r", username)
        raise HTTPException(
            status_code=401,
            detail={"success": False, "error": "Username atau password salah"},
        )

    try:
        # Fresh session id on every login
        sessions.destroy(request.cookies.get(SESSION_COOKIE_NAME))
        session = sessions.create()
        session.is_authenticated = True
        session.username = username
        sessions.set(session)
    except Exception as e:
        logger.exception("Login error: %s", e)
        raise HTTPException(status_code=500, detail={"success": False, "error": "Gagal melakukan login"})

    response.set_cookie(
        SESSION_COOKIE_NAME,
        session.session_id,
        max_age=SESSION_MAX_AGE,
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
    )
    logger.info("Login successful for %r", username)
    return {"success": True, "message": "Login berhasil"}


@router.post("/api/logout")
def logout(request: Request, response: Response, sessions: SessionStore = Depends(get_session_store)):
    try:
        sessions.destroy(request.cookies.get(SESSION_COOKIE_NAME))
    except Exception as e:
        logger.exception("Logout error: %s", e)
        raise HTTPException(status_code=500, detail="Gagal logout")
    response.delete_cookie(SESSION_COOKIE_NAME)
    return {"success": True, "message": "Logout berhasil"}


@router.get("/api/auth/check")
def check_auth(session: Optional[SessionRecord] = Depends(get_current_session)):
    if session is not None and session.is_authenticated:
        return {"authenticated": True, "username": session.username}
    return {"authenticated": False}


# ----------------- Error Handlers -----------------
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    content = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(content, status_code=exc.status_code, headers=getattr(exc, "headers", None))


async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        {"error": "Data permintaan tidak valid", "details": jsonable_encoder(exc.errors())},
        status_code=400,
    )


# ----------------- FastAPI App -----------------
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(title="Time Academy Admin API")
    app.state.settings = settings
    app.state.store = MaterialStore(settings.materials_file, settings.pdf_dir)
    app.state.sessions = SessionStore(ttl_seconds=SESSION_MAX_AGE)

    # Reflect any origin so the site can send the session cookie cross-origin
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=".*",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(router)

    # Static mounts go last so the routes above take precedence
    os.makedirs(settings.pdf_dir, exist_ok=True)
    app.mount("/pdf", PublicFiles(directory=settings.pdf_dir), name="pdf")
    # admin.html is only reachable through the gated route
    app.mount("/", PublicFiles(directory=settings.site_dir, html=True, protected=("admin.html",)), name="site")

    logger.info("Serving site from %s, materials at %s", settings.site_dir, settings.materials_file)
    return app


_app: Optional[FastAPI] = None


def __getattr__(name):
    # `uvicorn main:app` and `from main import app` build the env-configured app on
    # first access, so importing main for create_app() touches no directories
    global _app
    if name == "app":
        if _app is None:
            _app = create_app()
        return _app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


if __name__ == "__main__":
    import uvicorn

    settings = Settings.from_env()
    _app = create_app(settings)
    logger.info("Admin panel: http://localhost:%d/admin.html", settings.port)
    uvicorn.run(_app, host="0.0.0.0", port=settings.port)
