
from pydantic import BaseModel
from typing import List, Optional

from .geometry import PointBox

class CheckPdf(BaseModel):
    hash: Optional[str] = None

class Selection(BaseModel):
    # pixel-space box as drawn on the rendered page; mapped server-side
    pixel_box: dict
    rendered_size: dict

class SignItem(BaseModel):
    page_index: int
    pdf_box: Optional[PointBox] = None
    selection: Optional[Selection] = None

class SignPdf(BaseModel):
    pdf_id: str
    page_index: int
    pdf_box: Optional[PointBox] = None
    selection: Optional[Selection] = None
    signature_base64: str

class SignPdfMulti(BaseModel):
    pdf_id: str
    items: List[SignItem]
    signature_base64: str

class MapRequest(BaseModel):
    pixel_box: dict = {}
    rendered_size: dict = {}
    page_size: dict = {}

class FitRequest(BaseModel):
    image_size: dict
    target_box: dict
