"""
CRUD operations for device records

A record is live until DEVICE_TTL_HOURS have passed since created_at. Lookups
never return expired rows; the background sweep deletes them later. The
maintenance listing shows every stored row, expired or not.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional
import logging

from sqlalchemy import case
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pushrelay.config import settings
from pushrelay.models import Device

logger = logging.getLogger(__name__)

# Dialects with a native INSERT ... ON CONFLICT
_UPSERT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": postgresql_insert,
}


def expiry_cutoff(now: Optional[datetime] = None, ttl_hours: Optional[int] = None) -> datetime:
    """Records created at or before this instant are expired"""
    now = now or datetime.now(timezone.utc)
    if ttl_hours is None:
        ttl_hours = settings.DEVICE_TTL_HOURS
    return now - timedelta(hours=ttl_hours)


def expires_at(device: Device, ttl_hours: Optional[int] = None) -> datetime:
    if ttl_hours is None:
        ttl_hours = settings.DEVICE_TTL_HOURS
    return _as_utc(device.created_at) + timedelta(hours=ttl_hours)


def upsert_device(
    db: Session,
    code: str,
    fcm_token: str,
    refresh_expiry: Optional[bool] = None,
    ttl_hours: Optional[int] = None
) -> Device:
    """
    Creates the record for a code or overwrites its token

    created_at is kept on overwrite unless refresh_expiry is set, or the
    existing row has already expired and is waiting for the sweep.
    """
    if refresh_expiry is None:
        refresh_expiry = settings.REFRESH_EXPIRY_ON_UPDATE
    
    now = datetime.now(timezone.utc)
    cutoff = expiry_cutoff(now, ttl_hours)
    
    try:
        insert = _UPSERT_INSERTS.get(db.get_bind().dialect.name)
        if insert is not None:
            _native_upsert(db, insert, code, fcm_token, now, cutoff, refresh_expiry)
        else:
            _query_upsert(db, code, fcm_token, now, cutoff, refresh_expiry)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    
    device = db.query(Device).filter(Device.code == code).one()
    logger.info(f"Device registered: code={code}, token={fcm_token[:16]}...")
    return device


def _native_upsert(db: Session, insert, code, fcm_token, now, cutoff, refresh_expiry):
    stmt = insert(Device).values(code=code, fcm_token=fcm_token, created_at=now)
    
    if refresh_expiry:
        created_at = stmt.excluded.created_at
    else:
        created_at = case(
            (Device.created_at <= cutoff, stmt.excluded.created_at),
            else_=Device.created_at,
        )
    
    stmt = stmt.on_conflict_do_update(
        index_elements=[Device.code],
        set_={"fcm_token": stmt.excluded.fcm_token, "created_at": created_at},
    )
    db.execute(stmt)


def _query_upsert(db: Session, code, fcm_token, now, cutoff, refresh_expiry):
    device = db.query(Device).filter(Device.code == code).with_for_update().first()
    
    if device:
        device.fcm_token = fcm_token
        if refresh_expiry or _as_utc(device.created_at) <= cutoff:
            device.created_at = now
    else:
        db.add(Device(code=code, fcm_token=fcm_token, created_at=now))


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def get_device_by_code(db: Session, code: str, ttl_hours: Optional[int] = None) -> Optional[Device]:
    """
    Returns the live record for a code
    """
    return db.query(Device).filter(
        Device.code == code,
        Device.created_at > expiry_cutoff(ttl_hours=ttl_hours)
    ).first()


def get_all_devices(db: Session) -> List[Device]:
    """
    Returns every stored record, oldest first, including expired rows not yet swept
    """
    return db.query(Device).order_by(Device.created_at, Device.id).all()


def delete_device(db: Session, code: str) -> bool:
    """
    Deletes the record for a code; a missing code is not an error
    """
    deleted_count = db.query(Device).filter(
        Device.code == code
    ).delete(synchronize_session=False)
    
    db.commit()
    
    if deleted_count:
        logger.info(f"Deleted device: {code}")
    
    return deleted_count > 0


def purge_expired_devices(db: Session, ttl_hours: Optional[int] = None) -> int:
    """
    Deletes records older than DEVICE_TTL_HOURS
    """
    deleted_count = db.query(Device).filter(
        Device.created_at <= expiry_cutoff(ttl_hours=ttl_hours)
    ).delete(synchronize_session=False)
    
    db.commit()
    
    if deleted_count > 0:
        logger.info(f"Deleted {deleted_count} expired devices")
    
    return deleted_count
