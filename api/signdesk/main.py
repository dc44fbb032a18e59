
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from .config import LOG_LEVEL, STORAGE_URL_PREFIX
from .routers import documents, signing, geometry
from .db import init_db

logging.basicConfig(
    level=LOG_LEVEL,
    format="[%(asctime)s] [%(levelname)s] %(name)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("signdesk")

app = FastAPI(title="Signdesk API (PDF signature placement)")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info("%s %s", request.method, request.url.path)
    return await call_next(request)

@app.on_event("startup")
def on_startup():
    init_db()

app.include_router(documents.router, prefix="/api", tags=["documents"])
app.include_router(signing.router, prefix="/api", tags=["signing"])
app.include_router(geometry.router, prefix="/api/geometry", tags=["geometry"])
app.include_router(documents.storage_router, prefix=STORAGE_URL_PREFIX.rstrip("/"), tags=["storage"])

@app.get("/")
def root():
    return {"ok": True, "service": "signdesk-api"}
