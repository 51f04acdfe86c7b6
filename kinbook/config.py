import os
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    # -------------------------------------------------------
    # Project
    # -------------------------------------------------------
    PROJECT_NAME: str = "Kinbook API"
    ENV: str = os.getenv("ENV", "dev")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # -------------------------------------------------------
    # Database
    # -------------------------------------------------------
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "sqlite:///./kinbook.db"
    )

    # Hosted Postgres hands out postgres:// but SQLAlchemy needs postgresql://
    if DATABASE_URL.startswith("postgres://"):
        DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

    # -------------------------------------------------------
    # Authentication / JWT
    # -------------------------------------------------------
    # local | supabase
    AUTH_BACKEND: str = os.getenv("AUTH_BACKEND", "local")

    SECRET_KEY: str = os.getenv(
        "SECRET_KEY",
        "kinbook-local-dev-secret"   # Only used for local dev
    )
    ALGORITHM: str = "HS256"

    # 7 days by default
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(
        os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7)
    )

    # -------------------------------------------------------
    # Supabase (auth + storage)
    # -------------------------------------------------------
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_KEY: str = os.getenv("SUPABASE_KEY", "")
    SUPABASE_JWT_SECRET: str = os.getenv("SUPABASE_JWT_SECRET", "")
    SUPABASE_BUCKET: str = os.getenv("SUPABASE_BUCKET", "media")

    # -------------------------------------------------------
    # Public base URL (used to build absolute media URLs)
    # -------------------------------------------------------
    BASE_URL: str = os.getenv(
        "BASE_URL",
        "http://127.0.0.1:8000"
    )

    CORS_ORIGINS: list[str] = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "*").split(",")
        if origin.strip()
    ]

    # -------------------------------------------------------
    # Storage Configuration
    # -------------------------------------------------------
    # local | supabase
    STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "local")

    # Local media folder
    LOCAL_MEDIA_PATH: str = os.getenv(
        "LOCAL_MEDIA_PATH",
        "./media"   # Default for dev
    )

    # -------------------------------------------------------
    # Records
    # -------------------------------------------------------
    SEARCH_RESULT_LIMIT: int = int(os.getenv("SEARCH_RESULT_LIMIT", 10))

    # Off by default: a person may be linked as their own ancestor
    ENFORCE_ACYCLIC_LINEAGE: bool = _env_flag("ENFORCE_ACYCLIC_LINEAGE")


# Single instance that is imported everywhere
settings = Settings()
