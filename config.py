import os


def _env_list(name: str, default: str):
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class Config:
    """Service configuration, read from the environment once at import."""

    DATABASE_URL = os.getenv("DATABASE_URL")
    DATABASE_NAME = os.getenv("DATABASE_NAME")
    PORT = int(os.getenv("PORT", 8000))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    CORS_ORIGINS = _env_list("CORS_ORIGINS", "*")

    UPLOAD_DIR = os.getenv("UPLOAD_DIR", os.path.join("attached_assets", "uploads"))
    UPLOAD_URL_PREFIX = os.getenv("UPLOAD_URL_PREFIX", "/attached_assets/uploads").rstrip("/")
    MAX_UPLOAD_MB = float(os.getenv("MAX_UPLOAD_MB", 5))
    MAX_UPLOAD_FILES = int(os.getenv("MAX_UPLOAD_FILES", 10))

    SEED_DATA_PATH = os.getenv("SEED_DATA_PATH")

    @classmethod
    def database_configured(cls) -> bool:
        return bool(cls.DATABASE_URL and cls.DATABASE_NAME)
