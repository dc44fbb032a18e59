
import logging
import re
import time
from typing import Optional
from fastapi import APIRouter, Depends, UploadFile, File, Form, HTTPException, Response, status
from sqlmodel import Session, select
from sqlalchemy.exc import IntegrityError
from minio.error import S3Error
from .. import config
from ..db import get_session
from ..models import UploadedDocument, SignatureAudit
from ..schemas import CheckPdf
from ..storage import put_bytes, get_bytes, public_url
from ..stamping import sha256_bytes

logger = logging.getLogger(__name__)

router = APIRouter()
storage_router = APIRouter()

def _stored_name(original: Optional[str], attempt: int = 0) -> str:
    base = re.sub(r"\s+", "-", original or "upload")
    base = re.sub(r"[^a-zA-Z0-9\-_.]", "", base)
    base = re.sub(r"\.pdf$", "", base, flags=re.IGNORECASE) or "upload"
    stamp = int(time.time() * 1000)
    if attempt:
        return f"{base}-{stamp}-{attempt}.pdf"
    return f"{base}-{stamp}.pdf"

def _find_by_hash(session: Session, pdf_hash: str) -> Optional[UploadedDocument]:
    return session.exec(select(UploadedDocument).where(UploadedDocument.pdf_hash == pdf_hash)).first()

@router.post("/check-pdf")
def check_pdf(payload: CheckPdf, session: Session = Depends(get_session)):
    if not payload.hash:
        raise HTTPException(400, "hash missing")
    found = _find_by_hash(session, payload.hash)
    if not found:
        return {"exists": False}
    return {"exists": True, "url": found.pdf_path, "doc": found}

UPLOAD_CHUNK = 1024 * 1024
NAME_ATTEMPTS = 5

async def _read_limited(file: UploadFile) -> bytes:
    chunks = []
    total = 0
    while True:
        chunk = await file.read(UPLOAD_CHUNK)
        if not chunk:
            break
        total += len(chunk)
        if total > config.MAX_UPLOAD_BYTES:
            raise HTTPException(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "file too large")
        chunks.append(chunk)
    return b"".join(chunks)

def _duplicate_response(doc: UploadedDocument) -> dict:
    return {"success": True, "exists": True, "url": doc.pdf_path, "pdf_id": doc.pdf_id, "doc": doc}

@router.post("/upload-pdf")
async def upload_pdf(
    file: UploadFile = File(...),
    pdf_hash: Optional[str] = Form(default=None),
    session: Session = Depends(get_session),
):
    if file.content_type != "application/pdf":
        raise HTTPException(400, "Only PDF allowed")
    data = await _read_limited(file)
    pdf_hash = pdf_hash or sha256_bytes(data)

    existing = _find_by_hash(session, pdf_hash)
    if existing:
        logger.info("duplicate upload of %s matches %s", file.filename, existing.pdf_id)
        return _duplicate_response(existing)

    # reserve the pdf_id row before writing the blob so a name clash never overwrites another upload
    for attempt in range(NAME_ATTEMPTS):
        filename = _stored_name(file.filename, attempt)
        doc = UploadedDocument(
            pdf_id=filename[:-4],
            pdf_path=public_url(filename),
            pdf_hash=pdf_hash,
            original_filename=file.filename,
            size=len(data),
        )
        session.add(doc)
        try:
            session.flush()
        except IntegrityError:
            session.rollback()
            existing = _find_by_hash(session, pdf_hash)
            if existing:
                logger.info("concurrent upload of %s matches %s", file.filename, existing.pdf_id)
                return _duplicate_response(existing)
            logger.info("stored name %s taken, retrying", filename)
            continue
        break
    else:
        raise HTTPException(status.HTTP_409_CONFLICT, "could not allocate a stored name")

    put_bytes(filename, data, content_type="application/pdf")
    session.commit()
    session.refresh(doc)
    return {"success": True, "exists": False, "pdf_id": doc.pdf_id, "url": doc.pdf_path, "doc": doc}

@router.get("/documents")
def list_documents(session: Session = Depends(get_session)):
    docs = session.exec(
        select(SignatureAudit).order_by(SignatureAudit.created_at.desc(), SignatureAudit.id.desc())
    ).all()
    return {"value": docs, "count": len(docs)}

@storage_router.get("/{name}")
def download_stored_pdf(name: str):
    try:
        pdf_bytes = get_bytes(name)
    except S3Error:
        raise HTTPException(404, "stored file not found")
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{name}"'},
    )
