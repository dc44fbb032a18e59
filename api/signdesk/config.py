
import os

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./signdesk.db")
MINIO_ENDPOINT = os.getenv("MINIO_ENDPOINT", "minio:9000")
MINIO_ACCESS_KEY = os.getenv("MINIO_ACCESS_KEY", "minioadmin")
MINIO_SECRET_KEY = os.getenv("MINIO_SECRET_KEY", "minioadmin")
MINIO_BUCKET = os.getenv("MINIO_BUCKET", "signdesk")
MINIO_SECURE = os.getenv("MINIO_SECURE", "false").lower() == "true"
STORAGE_URL_PREFIX = os.getenv("STORAGE_URL_PREFIX", "/storage")
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(50 * 1024 * 1024)))
# when true, audit rows are written before the signing response is sent
BLOCKING_AUDIT_SAVE = os.getenv("BLOCKING_AUDIT_SAVE", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
