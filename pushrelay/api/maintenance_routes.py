"""
Maintenance endpoints for development builds

Included by create_app only when DEV_MODE is enabled.
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from pushrelay.config import Settings
from pushrelay.database import get_db
from pushrelay import crud_devices
from pushrelay.api.dependencies import get_settings
from pushrelay.api.device_routes import to_device_response
from pushrelay.errors import ErrorCode, RelayError
from pushrelay.schemas import DeviceResponse, MessageResponse, PurgeResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/devices", response_model=List[DeviceResponse], tags=["Maintenance"])
def list_devices(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """
    All stored devices, including expired ones not yet swept, without pagination
    """
    try:
        devices = crud_devices.get_all_devices(db)
    except Exception:
        logger.exception("Failed to fetch devices")
        raise RelayError(ErrorCode.INTERNAL_ERROR, "Failed to fetch devices")
    
    return [to_device_response(device, settings.DEVICE_TTL_HOURS) for device in devices]


@router.delete("/devices/{code}", response_model=MessageResponse, tags=["Maintenance"])
def delete_device(code: str, db: Session = Depends(get_db)):
    """
    Deletes a device; deleting an unknown code also succeeds
    """
    try:
        crud_devices.delete_device(db, code)
    except Exception:
        logger.exception("Failed to delete device")
        raise RelayError(ErrorCode.INTERNAL_ERROR, "Failed to delete device")
    
    return MessageResponse(message="Device deleted successfully")


@router.post("/devices/purge-expired", response_model=PurgeResponse, tags=["Maintenance"])
def purge_expired(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """
    Runs the expiry sweep immediately
    """
    try:
        deleted_count = crud_devices.purge_expired_devices(db, settings.DEVICE_TTL_HOURS)
    except Exception:
        logger.exception("Failed to purge expired devices")
        raise RelayError(ErrorCode.INTERNAL_ERROR, "Failed to purge expired devices")
    
    return PurgeResponse(
        message=f"Deleted {deleted_count} expired devices",
        deleted=deleted_count
    )
