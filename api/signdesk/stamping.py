
# Burns a signature image into a PDF using a reportlab overlay merged with pypdf.
# Used by the API routers and by the local command-line signer.

import base64
import binascii
import hashlib
import logging
from dataclasses import dataclass, field
from io import BytesIO
from typing import Iterable, List, Tuple

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PdfReadError
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from .geometry import FitRect, PointBox, fit_image

logger = logging.getLogger(__name__)


class StampingError(Exception):
    pass


class InvalidSignature(StampingError):
    pass


@dataclass
class AppliedPlacement:
    page_index: int
    box: PointBox
    rect: FitRect


@dataclass
class StampResult:
    pdf_bytes: bytes
    before_hash: str
    after_hash: str
    applied: List[AppliedPlacement] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)


def sha256_bytes(b: bytes) -> str:
    return hashlib.sha256(b).hexdigest()


def decode_signature(data_url: str) -> bytes:
    # accepts "data:image/png;base64,....." or bare base64
    if not data_url:
        raise InvalidSignature("signature is empty")
    if "," in data_url:
        data_url = data_url.split(",", 1)[1]
    try:
        data = base64.b64decode(data_url, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidSignature(f"signature is not valid base64: {exc}") from exc
    if not data:
        raise InvalidSignature("signature is empty")
    return data


def signature_mime(data_url: str) -> str:
    return "image/png" if (data_url or "").startswith("data:image/png") else "image/jpeg"


def _reader(pdf_bytes: bytes) -> PdfReader:
    try:
        return PdfReader(BytesIO(pdf_bytes))
    except (PdfReadError, ValueError, OSError) as exc:
        raise StampingError(f"could not read PDF: {exc}") from exc


def page_point_sizes(pdf_bytes: bytes) -> List[Tuple[float, float]]:
    reader = _reader(pdf_bytes)
    return [(float(p.mediabox.width), float(p.mediabox.height)) for p in reader.pages]


def image_size(image_bytes: bytes) -> Tuple[int, int]:
    try:
        return ImageReader(BytesIO(image_bytes)).getSize()
    except Exception as exc:
        raise InvalidSignature(f"could not read signature image: {exc}") from exc


def _overlay_page(width, height, image: ImageReader, rects: Iterable[FitRect]) -> bytes:
    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=(width, height))
    for r in rects:
        c.drawImage(image, r.x, r.y, width=r.width, height=r.height, mask="auto")
    c.showPage()
    c.save()
    return buf.getvalue()


def burn_signature(pdf_bytes: bytes, image_bytes: bytes, placements: Iterable[Tuple[int, PointBox]]) -> StampResult:
    """
    Draw ``image_bytes`` once per placement and return the rewritten PDF.

    Each placement is ``(page_index, PointBox)`` with a 0-based page index.
    The image is fitted inside the box keeping its aspect ratio. Placements
    on pages the document does not have are skipped and reported in
    ``StampResult.skipped``. Raises ``InvalidGeometry`` for boxes that cannot
    hold the image.
    """
    reader = _reader(pdf_bytes)
    writer = PdfWriter()
    for p in reader.pages:
        writer.add_page(p)
    num_pages = len(reader.pages)

    img_w, img_h = image_size(image_bytes)
    image = ImageReader(BytesIO(image_bytes))

    result = StampResult(pdf_bytes=b"", before_hash=sha256_bytes(pdf_bytes), after_hash="")
    draw_map = {}  # page_index -> [FitRect]
    for page_index, box in placements:
        if page_index < 0 or page_index >= num_pages:
            logger.warning("missing page for index %s (document has %s)", page_index, num_pages)
            result.skipped.append(page_index)
            continue
        rect = fit_image({"width": img_w, "height": img_h}, box)
        draw_map.setdefault(page_index, []).append(rect)
        result.applied.append(AppliedPlacement(page_index=page_index, box=box, rect=rect))

    for pidx, rects in draw_map.items():
        page = reader.pages[pidx]
        w = float(page.mediabox.width); h = float(page.mediabox.height)
        overlay_reader = PdfReader(BytesIO(_overlay_page(w, h, image, rects)))
        writer.pages[pidx].merge_page(overlay_reader.pages[0])

    out = BytesIO(); writer.write(out)
    result.pdf_bytes = out.getvalue()
    result.after_hash = sha256_bytes(result.pdf_bytes)
    return result
