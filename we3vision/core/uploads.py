"""
Upload intake: request body parsing, image validation and storage.

Files are checked before anything is written: declared content type must
be image/*, each file is at most MAX_UPLOAD_SIZE bytes, and a multi-upload
carries at most MAX_UPLOAD_FILES files. Stored names are generated, never
taken from the client.
"""

import logging
import os
import re
import uuid
from typing import Any, Dict, List, Optional, Tuple

from fastapi import Request
from starlette.datastructures import UploadFile

from we3vision.core.config import settings
from we3vision.core.exceptions import UploadError, ValidationError
from we3vision.core.storage import StorageBackend

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg")

_SAFE_FILENAME = re.compile(r"^[A-Za-z0-9_.\- ]+$")
_KEY_SEPARATORS = re.compile(r"[\[\].]+")


def _megabytes(size: int) -> str:
    return f"{size // (1024 * 1024)}MB"


def too_large_message() -> str:
    return f"File too large. Maximum size is {_megabytes(settings.MAX_UPLOAD_SIZE)}."


def too_many_message(limit: Optional[int] = None) -> str:
    limit = settings.MAX_UPLOAD_FILES if limit is None else limit
    return f"Too many files. Maximum is {limit} files."


NOT_AN_IMAGE_MESSAGE = "Not an image! Please upload an image."


def is_image_filename(filename: str) -> bool:
    return filename.lower().endswith(ALLOWED_IMAGE_EXTENSIONS)


def generate_stored_filename(field: str, original_filename: str) -> str:
    """
    Collision-resistant stored name: `<field>-<uuid4 hex><ext>`.

    Only the lower-cased extension survives from the client's filename.
    """
    extension = os.path.splitext(original_filename or "")[1].lower()
    if not _SAFE_FILENAME.match(extension or "x"):
        extension = ""
    return f"{field}-{uuid.uuid4().hex}{extension}"


def validate_stored_filename(filename: str) -> str:
    """Reject path traversal and anything outside the safe character set."""
    if "/" in filename or "\\" in filename or ".." in filename:
        raise ValidationError("Invalid filename")
    if not _SAFE_FILENAME.match(filename):
        raise ValidationError("Invalid filename")
    return filename


async def read_image(upload: UploadFile) -> bytes:
    """Validate one upload's declared type and size and return its bytes."""
    content_type = upload.content_type or ""
    if not content_type.startswith("image/"):
        logger.info(f"Rejected upload {upload.filename!r} with content type {content_type!r}")
        raise UploadError(NOT_AN_IMAGE_MESSAGE)

    # Read one byte past the limit so oversize files are detected
    # without buffering the whole body.
    data = await upload.read(settings.MAX_UPLOAD_SIZE + 1)
    if len(data) > settings.MAX_UPLOAD_SIZE:
        logger.info(f"Rejected upload {upload.filename!r}: larger than {settings.MAX_UPLOAD_SIZE} bytes")
        raise UploadError(too_large_message())
    return data


async def prepare_uploads(uploads: List[UploadFile], max_files: Optional[int] = None) -> List[Tuple[UploadFile, bytes]]:
    """
    Validate every upload before anything is stored.

    Returns (upload, bytes) pairs in request order.
    """
    max_files = settings.MAX_UPLOAD_FILES if max_files is None else max_files
    if len(uploads) > max_files:
        raise UploadError(too_many_message(max_files))
    return [(upload, await read_image(upload)) for upload in uploads]


def save_uploads(storage: StorageBackend, prepared: List[Tuple[UploadFile, bytes]], field: str) -> List[Dict[str, str]]:
    """Store validated uploads; one {filename, url} record per file."""
    stored = []
    for upload, data in prepared:
        filename = generate_stored_filename(field, upload.filename)
        url = storage.save(data, filename, content_type=upload.content_type)
        stored.append({"filename": filename, "url": url})
        logger.info(f"Stored upload {filename} ({len(data)} bytes)")
    return stored


async def store_uploads(
    storage: StorageBackend,
    uploads: List[UploadFile],
    field: str,
    max_files: Optional[int] = None,
) -> List[Dict[str, str]]:
    return save_uploads(storage, await prepare_uploads(uploads, max_files), field)


def _set_path(target: Dict[str, Any], path: List[str], value: Any, force_list: bool) -> None:
    for part in path[:-1]:
        child = target.get(part)
        if not isinstance(child, dict):
            child = {}
            target[part] = child
        target = child

    leaf = path[-1]
    if leaf in target:
        existing = target[leaf]
        if isinstance(existing, list):
            existing.append(value)
        else:
            target[leaf] = [existing, value]
    else:
        target[leaf] = [value] if force_list else value


def _indexed_to_lists(node: Any) -> Any:
    if not isinstance(node, dict):
        return node
    converted = {key: _indexed_to_lists(child) for key, child in node.items()}
    if converted and all(key.isdecimal() for key in converted):
        return [converted[key] for key in sorted(converted, key=int)]
    return converted


def unflatten_form(items: List[Tuple[str, Any]]) -> Dict[str, Any]:
    """
    Turn flat form pairs into nested fields.

    `salary[min]` and `salary.min` both become {"salary": {"min": ...}};
    repeated keys and `tags[]` collect into lists.
    Indexed keys such as `requirements[0]` collect into a list ordered by index.
    """
    fields: Dict[str, Any] = {}
    for key, value in items:
        path = [part for part in _KEY_SEPARATORS.split(key) if part]
        if not path:
            continue
        _set_path(fields, path, value, force_list=key.endswith("[]"))
    return {key: _indexed_to_lists(child) for key, child in fields.items()}


async def read_payload(request: Request) -> Tuple[Dict[str, Any], Dict[str, List[UploadFile]]]:
    """
    Read a JSON or form body into (fields, files).

    Files are grouped by form field; JSON bodies never carry files.
    """
    content_type = request.headers.get("content-type", "")

    if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        form = await request.form()
        values = []
        files: Dict[str, List[UploadFile]] = {}
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                # Browsers send an empty part for an untouched file input
                if value.filename:
                    files.setdefault(key, []).append(value)
            else:
                values.append((key, value))
        return unflatten_form(values), files

    body = await request.body()
    if not body.strip():
        return {}, {}
    try:
        data = await request.json()
    except ValueError:
        raise ValidationError("Invalid JSON body")
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data, {}
