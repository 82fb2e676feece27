"""
CRUD operations for the key -> URL asset table.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from we3vision.core.exceptions import conflict_from_integrity_error
from we3vision.models.asset import Asset

logger = logging.getLogger(__name__)


def get_all(db: Session) -> List[Asset]:
    return db.query(Asset).order_by(Asset.key.asc()).all()


def get_by_key(db: Session, key: str) -> Optional[Asset]:
    return db.query(Asset).filter(Asset.key == key.strip()).first()


def upsert(db: Session, key: str, url: str, alt: str = "") -> Asset:
    """
    Create the mapping for `key` or overwrite its url and alt.

    A concurrent insert of the same key surfaces as a ConflictError.
    """
    key = key.strip()
    asset = get_by_key(db, key)
    if asset is None:
        asset = Asset(key=key)
        db.add(asset)
    asset.url = url
    asset.alt = alt

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise conflict_from_integrity_error(exc, "key", key)
    db.refresh(asset)
    return asset


def delete_by_key(db: Session, key: str) -> bool:
    """Delete the mapping if present. Returns whether a row was removed."""
    deleted = db.query(Asset).filter(Asset.key == key.strip()).delete(synchronize_session=False)
    db.commit()
    if deleted:
        logger.info(f"Deleted asset mapping {key.strip()!r}")
    return bool(deleted)
