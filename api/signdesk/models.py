
from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field as ORMField

class UploadedDocument(SQLModel, table=True):
    id: Optional[int] = ORMField(default=None, primary_key=True)
    pdf_id: str = ORMField(unique=True)  # stored filename without .pdf
    pdf_path: str                        # "/storage/<pdf_id>.pdf"
    pdf_hash: Optional[str] = ORMField(default=None, index=True)
    original_filename: Optional[str] = None
    size: Optional[int] = None
    created_at: datetime = ORMField(default_factory=datetime.utcnow)

class SignatureAudit(SQLModel, table=True):
    id: Optional[int] = ORMField(default=None, primary_key=True)
    pdf_id: str
    page_index: int
    pdf_path_original: str
    pdf_path_signed: str
    before_hash: str  # sha256 of the original bytes
    after_hash: str   # sha256 of the signed bytes
    signature_mime: str = "image/png"
    created_at: datetime = ORMField(default_factory=datetime.utcnow)
