"""
API endpoint for registering a device under a code
"""
from typing import Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session
import logging

from pushrelay.config import Settings
from pushrelay.database import get_db
from pushrelay import crud_devices
from pushrelay.api.dependencies import get_settings
from pushrelay.errors import ErrorCode, RelayError
from pushrelay.schemas import DeviceResponse, RegisterDeviceRequest, RegisterDeviceResponse

logger = logging.getLogger(__name__)

router = APIRouter()

CODE_LENGTH = 6


def code_length(code: str) -> int:
    """Length in UTF-16 units, the way browser and mobile clients count it"""
    return len(code.encode("utf-16-le")) // 2


def is_valid_code(code: Optional[str]) -> bool:
    return bool(code) and code_length(code) == CODE_LENGTH


def validate_registration(request: RegisterDeviceRequest):
    """Rejects a missing or wrong-length code, then a missing token"""
    if not is_valid_code(request.code):
        raise RelayError(ErrorCode.INVALID_INPUT, "Invalid input")
    if not request.fcm_token:
        raise RelayError(ErrorCode.INVALID_INPUT, "Invalid input")


def to_device_response(device, ttl_hours: Optional[int] = None) -> DeviceResponse:
    return DeviceResponse(
        code=device.code,
        fcm_token=device.fcm_token,
        created_at=device.created_at,
        expires_at=crud_devices.expires_at(device, ttl_hours),
    )


@router.post("/register-device", response_model=RegisterDeviceResponse, tags=["Devices"])
def register_device(
    request: Optional[RegisterDeviceRequest] = Body(None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
):
    """
    Registers a push token under a 6-character code, replacing any existing token
    """
    request = request or RegisterDeviceRequest()
    validate_registration(request)
    
    try:
        device = crud_devices.upsert_device(
            db=db,
            code=request.code,
            fcm_token=request.fcm_token,
            refresh_expiry=settings.REFRESH_EXPIRY_ON_UPDATE,
            ttl_hours=settings.DEVICE_TTL_HOURS
        )
    except Exception:
        logger.exception("Registration error")
        raise RelayError(ErrorCode.INTERNAL_ERROR, "Failed to register device")
    
    return RegisterDeviceResponse(
        message="Device registered successfully",
        device=to_device_response(device, settings.DEVICE_TTL_HOURS)
    )
