import re

from sqlmodel import Session, select

from signdesk.db import engine
from signdesk.models import SignatureAudit
from signdesk.storage import public_url

PUBLIC_PREFIX = public_url("")


def _needs_fix(path: str) -> bool:
    return bool(path) and not path.startswith(PUBLIC_PREFIX)


def _to_public(path: str) -> str:
    name = re.split(r"[\\/]", path)[-1]
    return public_url(name) if name else path


with Session(engine) as session:
    audits = [
        a for a in session.exec(select(SignatureAudit)).all()
        if _needs_fix(a.pdf_path_original) or _needs_fix(a.pdf_path_signed)
    ]
    print(f"Found {len(audits)} audit records to fix")
    for audit in audits:
        if _needs_fix(audit.pdf_path_original):
            audit.pdf_path_original = _to_public(audit.pdf_path_original)
        if _needs_fix(audit.pdf_path_signed):
            audit.pdf_path_signed = _to_public(audit.pdf_path_signed)
        print(f"Fixed audit {audit.id} -> {audit.pdf_path_original} {audit.pdf_path_signed}")
        session.add(audit)
    session.commit()
    print(f"Done. Updated {len(audits)} records.")
