from fastapi import (
    FastAPI,
    Depends,
    HTTPException,
    Request,
    status,
)
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse, Response
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ConfigDict, field_validator

from sqlalchemy.orm import Session

from .config import settings
from .errors import ContactBookError, ConflictError, StorageError, ValidationError
from .storage import init_db, get_db, ping
from .services import check_contact, export_vcard, list_all, upload_contact
from .logging_utils import logging_middleware, log_extra, logger
from .metrics import inc_check_contact_result, inc_upload_result, render_metrics


app = FastAPI(title="Contact Book")

# Attach logging middleware
app.middleware("http")(logging_middleware)


# ---------- Pydantic Models ----------


def _not_blank(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("must not be empty")
    return v


class UploadPayload(BaseModel):
    name: str
    phone: str
    country_code: str

    @field_validator("name", "country_code")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _not_blank(v)


class CheckContactPayload(BaseModel):
    phone: str
    country_code: str

    @field_validator("country_code")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _not_blank(v)


class ContactResponseItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    phone: str
    country_code: str
    created_at: str


# ---------- Startup ----------


@app.on_event("startup")
def on_startup() -> None:
    # initialize DB schema
    init_db()


# ---------- Exception handlers ----------


_UPLOAD_RESULTS = {
    ValidationError: "validation_error",
    ConflictError: "duplicate",
    StorageError: "storage_error",
}


# storage failure messages per route; anything else gets "Database error"
_STORAGE_ERROR_MESSAGES = {
    "/contacts": "Error fetching contacts",
    "/download": "Error generating VCF",
}


def _record_upload_result(request: Request, result: str) -> None:
    if request.url.path == "/upload":
        inc_upload_result(result)
        log_extra(request, result=result, dup=result == "duplicate")


@app.exception_handler(ContactBookError)
async def contact_book_error_handler(request: Request, exc: ContactBookError):
    _record_upload_result(request, _UPLOAD_RESULTS.get(type(exc), "error"))

    message = exc.message
    if isinstance(exc, StorageError):
        logger.error("storage failure on %s %s", request.method, request.url.path, exc_info=exc)
        message = _STORAGE_ERROR_MESSAGES.get(request.url.path, "Database error")

    return JSONResponse(status_code=exc.status_code, content={"error": message})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    _record_upload_result(request, "validation_error")

    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request body"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": message},
    )


# ---------- Endpoints ----------


@app.get("/health/live")
def health_live():
    # always 200 once running
    return {"status": "ok"}


@app.get("/health/ready")
def health_ready(db: Session = Depends(get_db)):
    try:
        ping(db)
    except StorageError as e:
        raise HTTPException(status_code=503, detail=e.message)
    return {"status": "ok"}


@app.post("/upload")
def upload(
    payload: UploadPayload,
    request: Request,
    db: Session = Depends(get_db),
):
    result = upload_contact(
        db,
        name=payload.name,
        phone=payload.phone,
        country_code=payload.country_code,
    )
    _record_upload_result(request, "created")
    log_extra(request, contact_id=result.id)
    return {"success": True}


@app.post("/check-contact")
def check_contact_endpoint(
    payload: CheckContactPayload,
    db: Session = Depends(get_db),
):
    exists = check_contact(db, phone=payload.phone, country_code=payload.country_code)
    inc_check_contact_result(exists)
    return {"exists": exists}


@app.get("/contacts", response_model=list[ContactResponseItem])
def get_contacts(db: Session = Depends(get_db)):
    return list_all(db)


@app.get("/download")
def download(db: Session = Depends(get_db)):
    return Response(
        content=export_vcard(db),
        media_type="text/vcard",
        headers={
            "Content-Disposition": f'attachment; filename="{settings.EXPORT_FILENAME}"',
        },
    )


@app.get("/metrics")
def metrics():
    text = render_metrics()
    return PlainTextResponse(content=text, media_type="text/plain")


# Registered last so the API routes above take precedence.
@app.get("/{full_path:path}", include_in_schema=False)
def frontend(full_path: str):
    static_dir = settings.STATIC_DIR.resolve()
    candidate = (static_dir / full_path).resolve()
    if full_path and candidate.is_relative_to(static_dir) and candidate.is_file():
        return FileResponse(candidate)
    return FileResponse(static_dir / "index.html")
