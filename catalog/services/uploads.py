"""
Uploads Service

Stores book files, covers and profile pictures under settings.upload_dir.

Rules:
- Stored names are sanitized (no path components, no special characters)
  and never overwrite an existing file
- Uploads larger than settings.max_upload_size are rejected
- Covers and profile pictures must be images
- Book files must be pdf, epub, txt or mobi
- Downloads only resolve plain file names inside the upload directory
"""

import logging
import os
import re
import time
from pathlib import Path
from typing import BinaryIO

from fastapi import UploadFile

from catalog.config import get_settings
from catalog.services.exceptions import InvalidUploadError, UploadTooLargeError

logger = logging.getLogger(__name__)
settings = get_settings()

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
BOOK_EXTENSIONS = {".pdf", ".epub", ".txt", ".mobi"}
BOOK_MIME_TYPES = {
    "application/pdf",
    "application/epub+zip",
    "text/plain",
    "application/x-mobipocket-ebook",
}

MAX_FILENAME_LENGTH = 200
CHUNK_SIZE = 1024 * 1024


def upload_root() -> Path:
    """The upload directory, created on first use."""
    root = Path(settings.upload_dir).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


def get_file_extension(filename: str) -> str:
    """Lowercase extension including the dot, '' when there is none."""
    return os.path.splitext(filename)[1].lower()


def sanitize_filename(filename: str) -> str:
    """
    Make a client-supplied file name safe to store.

    Examples:
        >>> sanitize_filename("../../../etc/passwd")
        'passwd'
        >>> sanitize_filename("test@file#name$.pdf")
        'test_file_name_.pdf'
    """
    name = re.split(r"[\\/]", filename or "")[-1]
    name = re.sub(r"[^A-Za-z0-9._-]", "_", name)
    name = re.sub(r"\.{2,}", ".", name)
    name = name.strip(".")

    if not name:
        return f"file_{int(time.time() * 1000)}"

    if len(name) > MAX_FILENAME_LENGTH:
        stem, ext = os.path.splitext(name)
        name = stem[: MAX_FILENAME_LENGTH - len(ext)] + ext

    return name


def is_image_file(upload: UploadFile) -> bool:
    content_type = (upload.content_type or "").lower()
    if content_type.startswith("image/"):
        return True
    return get_file_extension(upload.filename or "") in IMAGE_EXTENSIONS


def is_book_file(upload: UploadFile) -> bool:
    if get_file_extension(upload.filename or "") in BOOK_EXTENSIONS:
        return True
    return (upload.content_type or "").lower() in BOOK_MIME_TYPES


def _create_unique(root: Path, name: str) -> tuple[Path, BinaryIO]:
    """Create and open a new file named name, or name_1, name_2, ... if taken."""
    stem, ext = os.path.splitext(name)
    candidate, counter = name, 0
    while True:
        target = root / candidate
        try:
            # "xb" fails on an existing file, including one created by a
            # concurrent upload since the previous attempt
            return target, open(target, "xb")
        except FileExistsError:
            counter += 1
            candidate = f"{stem}_{counter}{ext}"


def save_upload(upload: UploadFile, prefix: str = "") -> str:
    """
    Write an upload into the upload directory.

    Reads the spooled file synchronously; call from a sync route so the
    work runs in FastAPI's threadpool.

    Args:
        upload: The incoming file
        prefix: Optional name prefix (e.g. "profile_42_")

    Returns:
        The stored file name (relative to the upload directory)

    Raises:
        UploadTooLargeError: The file exceeds settings.max_upload_size
    """
    root = upload_root()
    target, out = _create_unique(root, sanitize_filename(f"{prefix}{upload.filename or ''}"))

    size = 0
    try:
        with out:
            upload.file.seek(0)
            while chunk := upload.file.read(CHUNK_SIZE):
                size += len(chunk)
                if size > settings.max_upload_size:
                    raise UploadTooLargeError(settings.max_upload_size)
                out.write(chunk)
    except UploadTooLargeError:
        target.unlink(missing_ok=True)
        logger.warning(f"Rejected oversized upload: {upload.filename}")
        raise

    logger.info(f"Stored upload {target.name} ({size} bytes)")
    return target.name


def save_image(upload: UploadFile, prefix: str = "") -> str:
    """Store an image upload (cover or profile picture)."""
    if not is_image_file(upload):
        raise InvalidUploadError("Only image files are allowed")
    return save_upload(upload, prefix)


def save_book_file(upload: UploadFile) -> str:
    """Store a downloadable book file."""
    if not is_book_file(upload):
        raise InvalidUploadError("Book file must be a PDF, EPUB, TXT or MOBI file")
    return save_upload(upload)


def resolve_upload(filename: str) -> Path | None:
    """
    Locate a stored file for download.

    Returns:
        The file path, or None when no such file exists

    Raises:
        InvalidUploadError: The name tries to escape the upload directory
    """
    if not filename or "/" in filename or "\\" in filename or ".." in filename:
        raise InvalidUploadError("Invalid file name")

    root = upload_root()
    path = (root / filename).resolve()
    if path.parent != root:
        raise InvalidUploadError("Invalid file name")

    return path if path.is_file() else None


def delete_upload(filename: str | None) -> None:
    """Remove a stored file; missing files are ignored."""
    if not filename:
        return
    try:
        path = resolve_upload(filename)
    except InvalidUploadError:
        logger.warning(f"Refusing to delete suspicious file name: {filename}")
        return
    if path is not None:
        path.unlink(missing_ok=True)
        logger.info(f"Deleted upload {filename}")
