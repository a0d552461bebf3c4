"""
API endpoint for sending a push notification to the device behind a code
"""
from typing import Callable, Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session
import logging

from pushrelay.config import Settings
from pushrelay.database import get_db
from pushrelay import crud_devices
from pushrelay.api.dependencies import get_settings
from pushrelay.api.device_routes import is_valid_code
from pushrelay.errors import ErrorCode, RelayError
from pushrelay.schemas import MessageResponse, SendNotificationRequest
from pushrelay.services.firebase_service import get_push_sender

logger = logging.getLogger(__name__)

router = APIRouter()


def validate_notification(request: SendNotificationRequest):
    """Checks target code, title and body in that order"""
    if not is_valid_code(request.target_code):
        raise RelayError(ErrorCode.INVALID_TARGET, "Invalid target code")
    if not request.title or not request.title.strip():
        raise RelayError(ErrorCode.MISSING_TITLE, "Title is required")
    if not request.body or not request.body.strip():
        raise RelayError(ErrorCode.MISSING_BODY, "Message body is required")


@router.post("/send-notification", response_model=MessageResponse, tags=["Notifications"])
def send_notification(
    request: Optional[SendNotificationRequest] = Body(None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    send_push: Callable[..., str] = Depends(get_push_sender)
):
    """
    Sends one push notification to the device registered under targetCode
    """
    request = request or SendNotificationRequest()
    validate_notification(request)
    
    try:
        device = crud_devices.get_device_by_code(db, request.target_code, settings.DEVICE_TTL_HOURS)
        if not device:
            raise RelayError(ErrorCode.DEVICE_NOT_FOUND, "Device not found")
        
        message_id = send_push(
            device.fcm_token,
            request.title,
            request.body,
            request.sender_code
        )
    except RelayError:
        raise
    except Exception:
        logger.exception("Notification error")
        raise RelayError(ErrorCode.INTERNAL_ERROR, "Failed to send notification")
    
    logger.info(f"Notification sent to {request.target_code}: {message_id}")
    return MessageResponse(message="Notification sent successfully")
