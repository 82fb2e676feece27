"""
Site asset mappings: a unique key (e.g. "home-hero") mapped to an image URL.

Reads are public; writes are admin only.
"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from we3vision.core.database import get_db
from we3vision.core.deps import get_admin_user
from we3vision.core.exceptions import NotFoundError, ValidationError
from we3vision.core.responses import success_response
from we3vision.core.uploads import read_payload
from we3vision.crud import asset as asset_crud
from we3vision.models.user import User
from we3vision.schemas.asset import AssetResponse, AssetUpsert
from we3vision.schemas.common import blank_to_none, to_payload, validate_fields

router = APIRouter(prefix="/assets", tags=["Assets"])
logger = logging.getLogger(__name__)


@router.get("/")
def list_assets(db: Session = Depends(get_db)):
    return success_response([to_payload(AssetResponse, a) for a in asset_crud.get_all(db)])


@router.get("/{key}")
def get_asset(key: str, db: Session = Depends(get_db)):
    asset = asset_crud.get_by_key(db, key)
    if not asset:
        raise NotFoundError("Asset not found")
    return success_response(to_payload(AssetResponse, asset))


@router.put("/{key}")
async def upsert_asset(
    key: str,
    request: Request,
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user),
):
    """Create the mapping for `key`, or replace its url and alt text."""
    fields, _ = await read_payload(request)
    if blank_to_none(fields.get("url")) is None:
        raise ValidationError("url is required")
    if not key.strip():
        raise ValidationError("key is required")
    data = validate_fields(AssetUpsert, fields)

    asset = asset_crud.upsert(db, key, url=data.url, alt=data.alt)
    logger.info(f"Admin {admin_user.id} saved asset {asset.key!r}")
    return success_response(to_payload(AssetResponse, asset))


@router.delete("/{key}")
def delete_asset(
    key: str,
    db: Session = Depends(get_db),
    admin_user: User = Depends(get_admin_user),
):
    """Remove a mapping. Deleting a key that does not exist also succeeds."""
    asset_crud.delete_by_key(db, key)
    return success_response(message="Asset mapping deleted")
