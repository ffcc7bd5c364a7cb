"""
Configuração centralizada da aplicação.

Todos os valores podem ser sobrescritos por variáveis de ambiente.
"""
import os
import logging

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Autenticação
DEV_JWT_SECRET = "fallback-secret-key-for-development"
JWT_SECRET = os.getenv("JWT_SECRET", DEV_JWT_SECRET)
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))  # 24 horas

if JWT_SECRET == DEV_JWT_SECRET:
    logger.warning("JWT_SECRET not set, using fallback key")

# Supabase
SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_KEY = os.getenv("SUPABASE_KEY", "")

# "supabase" ou "memory"
STORAGE_BACKEND = os.getenv(
    "STORAGE_BACKEND",
    "supabase" if SUPABASE_URL and SUPABASE_KEY else "memory",
).lower()

# Upload
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))  # 10 MiB
ALLOW_CSV_UPLOADS = _env_bool("ALLOW_CSV_UPLOADS", False)
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
EXCEL_EXTENSIONS = (".xlsx", ".xls")
CSV_EXTENSION = ".csv"


def allowed_extensions() -> tuple:
    """Extensões aceitas no upload, considerando ALLOW_CSV_UPLOADS"""
    if ALLOW_CSV_UPLOADS:
        return EXCEL_EXTENSIONS + (CSV_EXTENSION,)
    return EXCEL_EXTENSIONS


# Logging
LOG_FILE = os.getenv("LOG_FILE", "app.log")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Servidor
CORS_ORIGINS = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()]
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "5000"))
