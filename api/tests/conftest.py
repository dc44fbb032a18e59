import base64
import os
from io import BytesIO
from typing import Dict

import pytest
from fastapi.testclient import TestClient
from minio.error import S3Error
from PIL import Image
from reportlab.pdfgen import canvas
from sqlmodel import SQLModel, Session, create_engine

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

from signdesk.main import app  # noqa: E402
from signdesk import db as db_module  # noqa: E402
from signdesk.db import get_session  # noqa: E402
from signdesk import storage as storage_module  # noqa: E402
from signdesk.routers import documents, signing  # noqa: E402


def make_pdf(*sizes) -> bytes:
    """One page per (width, height); A4 when no sizes are given."""
    sizes = sizes or ((595, 842),)
    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=sizes[0])
    for idx, size in enumerate(sizes):
        c.setPageSize(size)
        c.drawString(72, 72, f"page {idx + 1}")
        c.showPage()
    c.save()
    return buf.getvalue()


def make_image(width=200, height=100, fmt="PNG") -> bytes:
    mode = "RGBA" if fmt == "PNG" else "RGB"
    img = Image.new(mode, (width, height), (20, 20, 120, 255)[: len(mode)])
    buf = BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def data_url(image: bytes, mime="image/png") -> str:
    return f"data:{mime};base64,{base64.b64encode(image).decode()}"


@pytest.fixture(scope="session")
def test_engine(tmp_path_factory):
    db_path = tmp_path_factory.mktemp("data") / "test.db"
    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )
    return engine


@pytest.fixture
def setup_db(test_engine):
    SQLModel.metadata.drop_all(test_engine)
    SQLModel.metadata.create_all(test_engine)
    yield
    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture
def mock_storage(monkeypatch) -> Dict[str, bytes]:
    store: Dict[str, bytes] = {}

    def fake_put_bytes(key: str, data: bytes, content_type: str = "application/pdf"):
        store[key] = bytes(data)

    def fake_get_bytes(key: str) -> bytes:
        if key not in store:
            raise S3Error("NoSuchKey", "missing", f"/{key}", "test-request", "test-host", None)
        return store[key]

    for target in (storage_module, documents, signing):
        if hasattr(target, "put_bytes"):
            monkeypatch.setattr(target, "put_bytes", fake_put_bytes)
        if hasattr(target, "get_bytes"):
            monkeypatch.setattr(target, "get_bytes", fake_get_bytes)
    return store


@pytest.fixture
def client(test_engine, setup_db, mock_storage, monkeypatch):
    monkeypatch.setattr(db_module, "engine", test_engine)

    def override_session():
        with Session(test_engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
