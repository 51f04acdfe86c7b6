import logging
import os
import shutil
import uuid
from pathlib import Path

from fastapi import UploadFile

from kinbook.config import settings
from kinbook.errors import BackendUnavailable, ValidationFailure
from kinbook.utils.urls import absolute_media_url


logger = logging.getLogger(__name__)


# ==========================================================
# LIMITS
# ==========================================================
MAX_IMAGE_SIZE = 5 * 1024 * 1024
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".gif"}


# ==========================================================
# VALIDATION
# ==========================================================
def validate_image(file: UploadFile) -> None:
    ext = os.path.splitext(file.filename or "")[1].lower()
    if ext not in IMAGE_EXTENSIONS:
        raise ValidationFailure("Unsupported image type")

    file.file.seek(0, os.SEEK_END)
    size = file.file.tell()
    file.file.seek(0)

    if size == 0:
        raise ValidationFailure("File is empty")

    if size > MAX_IMAGE_SIZE:
        raise ValidationFailure("Image too large (max 5MB).")


def safe_filename(filename: str | None) -> str:
    name = os.path.basename((filename or "").replace("\\", "/")).strip()
    if not name or name in {".", ".."}:
        name = f"{uuid.uuid4()}.jpg"
    return name


# ==========================================================
# EXTRACT SUPABASE STORAGE KEY
# ==========================================================
def extract_storage_key(url_or_path: str) -> str:
    """
    Converts Supabase public URL → storage key.
    """

    if not url_or_path:
        return ""

    if url_or_path.startswith("http"):
        marker = f"/storage/v1/object/public/{settings.SUPABASE_BUCKET}/"
        if marker in url_or_path:
            return url_or_path.split(marker)[1].split("?")[0]

    return url_or_path.strip("/")


# ==========================================================
# UPLOAD (LOCAL or SUPABASE)
# ==========================================================
def upload_blob(path: str, file: UploadFile) -> str:
    """Store file at path and return its public URL."""
    path = path.strip("/")

    # -----------------------------
    # LOCAL STORAGE
    # -----------------------------
    if settings.STORAGE_BACKEND == "local":
        file_path = Path(settings.LOCAL_MEDIA_PATH) / path
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file.file.seek(0)
            with open(file_path, "wb") as buffer:
                shutil.copyfileobj(file.file, buffer)
        except OSError as exc:
            raise BackendUnavailable(f"Local upload failed for {path}: {exc}") from exc

        return absolute_media_url(f"/media/{path}")

    # -----------------------------
    # SUPABASE STORAGE
    # -----------------------------
    if settings.STORAGE_BACKEND == "supabase":
        from kinbook.supabase_client import get_supabase

        file.file.seek(0)
        contents = file.file.read()

        bucket = get_supabase().storage.from_(settings.SUPABASE_BUCKET)
        try:
            bucket.upload(
                path,
                contents,
                {
                    "content-type": file.content_type or "application/octet-stream",
                    "upsert": "true",
                },
            )
        except Exception as exc:
            raise BackendUnavailable(f"Supabase upload failed for {path}: {exc}") from exc

        logger.info("Supabase upload OK: %s", path)
        return bucket.get_public_url(path)

    raise ValueError(f"Invalid STORAGE_BACKEND: {settings.STORAGE_BACKEND}")


# ==========================================================
# DELETE FILE (LOCAL or SUPABASE)
# ==========================================================
def delete_blob(url_or_path: str) -> None:
    if not url_or_path:
        return

    if settings.STORAGE_BACKEND == "local":
        marker = "/media/"
        rel = url_or_path.split(marker, 1)[1] if marker in url_or_path else url_or_path
        fs_path = Path(settings.LOCAL_MEDIA_PATH) / rel.split("?")[0].strip("/")
        try:
            fs_path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Local delete failed for %s: %s", fs_path, exc)

    elif settings.STORAGE_BACKEND == "supabase":
        from kinbook.supabase_client import get_supabase

        key = extract_storage_key(url_or_path)
        try:
            get_supabase().storage.from_(settings.SUPABASE_BUCKET).remove([key])
            logger.info("Supabase delete OK: %s", key)
        except Exception as exc:
            logger.warning("Supabase delete failed for %s: %s", key, exc)


# ==========================================================
# PEOPLE PHOTOS
# ==========================================================
def profile_photo_path(person_id: str, filename: str) -> str:
    return f"people/{person_id}/profile/{safe_filename(filename)}"


def memory_photo_path(person_id: str, filename: str) -> str:
    return f"people/{person_id}/memories/{safe_filename(filename)}"


def upload_profile_photo(person_id: str, upload: UploadFile) -> str:
    validate_image(upload)
    return upload_blob(profile_photo_path(person_id, upload.filename), upload)


def upload_memory_photo(person_id: str, upload: UploadFile) -> str:
    validate_image(upload)
    return upload_blob(memory_photo_path(person_id, upload.filename), upload)
