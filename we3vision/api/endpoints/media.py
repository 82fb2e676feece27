"""
Media library endpoints (admin only): list, upload and delete images.
"""

import logging

from fastapi import APIRouter, Depends, Request, status

from we3vision.core.deps import get_admin_user
from we3vision.core.exceptions import NotFoundError
from we3vision.core.responses import success_response
from we3vision.core.storage import StorageBackend, get_storage
from we3vision.core.uploads import is_image_filename, read_payload, store_uploads, validate_stored_filename
from we3vision.models.user import User
from we3vision.schemas.asset import MediaFile
from we3vision.schemas.common import to_payload

router = APIRouter(prefix="/media", tags=["Media"])
logger = logging.getLogger(__name__)

UPLOAD_FIELD = "images"


def absolute_url(request: Request, path: str) -> str:
    """Site-relative paths (local storage) are expanded against the request host."""
    if path.startswith("/"):
        return str(request.base_url).rstrip("/") + path
    return path


@router.get("/")
def list_media(
    request: Request,
    storage: StorageBackend = Depends(get_storage),
    admin_user: User = Depends(get_admin_user),
):
    images = [
        to_payload(MediaFile, {"filename": name, "url": absolute_url(request, storage.public_path(name))})
        for name in storage.list_files()
        if is_image_filename(name)
    ]
    return success_response(images)


@router.post("/", status_code=status.HTTP_201_CREATED)
async def upload_media(
    request: Request,
    storage: StorageBackend = Depends(get_storage),
    admin_user: User = Depends(get_admin_user),
):
    """Upload up to MAX_UPLOAD_FILES images under the `images` field."""
    _, files = await read_payload(request)
    stored = await store_uploads(storage, files.get(UPLOAD_FIELD, []), UPLOAD_FIELD)
    logger.info(f"Admin {admin_user.id} uploaded {len(stored)} file(s)")
    return success_response([
        to_payload(MediaFile, {"filename": s["filename"], "url": absolute_url(request, s["url"])})
        for s in stored
    ])


@router.delete("/{filename}")
def delete_media(
    filename: str,
    storage: StorageBackend = Depends(get_storage),
    admin_user: User = Depends(get_admin_user),
):
    validate_stored_filename(filename)
    if not storage.delete_file(filename):
        raise NotFoundError("File not found")
    logger.info(f"Admin {admin_user.id} deleted media {filename}")
    return success_response(message="File deleted")
