
import logging
import time
from typing import List, Optional, Tuple
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlmodel import Session
from minio.error import S3Error
from .. import config, db
from ..db import get_session
from ..geometry import InvalidGeometry, PointBox, map_pixel_box
from ..models import SignatureAudit
from ..schemas import SignPdf, SignPdfMulti, Selection
from ..stamping import StampingError, StampResult, burn_signature, decode_signature, page_point_sizes, signature_mime
from ..storage import get_bytes, put_bytes, public_url

logger = logging.getLogger(__name__)

router = APIRouter()

# ---------- helpers ----------
def _load_original(pdf_id: str) -> bytes:
    if not pdf_id or "/" in pdf_id or "\\" in pdf_id:
        raise HTTPException(400, "invalid pdf_id")
    try:
        return get_bytes(f"{pdf_id}.pdf")
    except S3Error:
        raise HTTPException(400, f"original PDF not found: {pdf_id}")

def _resolve_box(
    pdf_box: Optional[PointBox],
    selection: Optional[Selection],
    page_index: int,
    page_sizes: List[Tuple[float, float]],
) -> PointBox:
    if pdf_box is not None:
        return pdf_box
    if selection is None:
        raise HTTPException(400, "pdf_box or selection required")
    if not 0 <= page_index < len(page_sizes):
        # burn_signature reports the page as skipped
        return PointBox(x=0, y=0, width=0, height=0)
    width, height = page_sizes[page_index]
    mapped = map_pixel_box(selection.pixel_box, selection.rendered_size, {"width": width, "height": height})
    return mapped.point_box

def _burn(original: bytes, signature_base64: str, items) -> StampResult:
    try:
        image_bytes = decode_signature(signature_base64)
        page_sizes = page_point_sizes(original) if any(it.pdf_box is None for it in items) else []
        placements = [
            (it.page_index, _resolve_box(it.pdf_box, it.selection, it.page_index, page_sizes))
            for it in items
        ]
        return burn_signature(original, image_bytes, placements)
    except InvalidGeometry as exc:
        raise HTTPException(400, f"invalid geometry: {exc}")
    except StampingError as exc:
        raise HTTPException(400, str(exc))

def _store_signed(pdf_id: str, result: StampResult, suffix: str) -> str:
    out_name = f"{pdf_id}-{suffix}-{int(time.time() * 1000)}.pdf"
    put_bytes(out_name, result.pdf_bytes, content_type="application/pdf")
    return out_name

def _audit_records(pdf_id: str, out_name: str, result: StampResult, mime: str) -> List[dict]:
    return [
        {
            "pdf_id": pdf_id,
            "page_index": applied.page_index,
            "pdf_path_original": public_url(f"{pdf_id}.pdf"),
            "pdf_path_signed": public_url(out_name),
            "before_hash": result.before_hash,
            "after_hash": result.after_hash,
            "signature_mime": mime,
        }
        for applied in result.applied
    ]

def _save_audits_async(records: List[dict]):
    try:
        with Session(db.engine) as session:
            for record in records:
                session.add(SignatureAudit(**record))
            session.commit()
        logger.info("saved %d audit record(s) (async)", len(records))
    except Exception as exc:
        logger.warning("failed to save audit records (async): %s", exc)

def _persist_audits(records: List[dict], session: Session, background: BackgroundTasks):
    if not records:
        return
    if not config.BLOCKING_AUDIT_SAVE:
        background.add_task(_save_audits_async, records)
        return
    try:
        for record in records:
            session.add(SignatureAudit(**record))
        session.commit()
    except Exception as exc:
        session.rollback()
        logger.error("audit save failed (blocking mode): %s", exc)
        raise HTTPException(500, f"audit save failed: {exc}")
    logger.info("saved %d audit record(s) (blocking)", len(records))

# ---------- routes ----------
@router.post("/sign-pdf")
def sign_pdf(payload: SignPdf, background: BackgroundTasks, session: Session = Depends(get_session)):
    original = _load_original(payload.pdf_id)
    result = _burn(original, payload.signature_base64, [payload])
    if result.skipped:
        raise HTTPException(400, "Invalid page_index")

    out_name = _store_signed(payload.pdf_id, result, "signed")
    records = _audit_records(payload.pdf_id, out_name, result, signature_mime(payload.signature_base64))
    _persist_audits(records, session, background)
    return {
        "success": True,
        "url": public_url(out_name),
        "before_hash": result.before_hash,
        "after_hash": result.after_hash,
    }

@router.post("/sign-pdf-multi")
def sign_pdf_multi(payload: SignPdfMulti, background: BackgroundTasks, session: Session = Depends(get_session)):
    if not payload.items:
        raise HTTPException(400, "items must not be empty")
    original = _load_original(payload.pdf_id)
    result = _burn(original, payload.signature_base64, payload.items)

    out_name = _store_signed(payload.pdf_id, result, "signed-multi")
    records = _audit_records(payload.pdf_id, out_name, result, signature_mime(payload.signature_base64))
    _persist_audits(records, session, background)
    return {
        "success": True,
        "url": public_url(out_name),
        "before_hash": result.before_hash,
        "after_hash": result.after_hash,
        "skipped": result.skipped,
    }
