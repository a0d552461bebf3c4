import logging
from datetime import datetime, timezone
from typing import Dict, Optional

import firebase_admin
from firebase_admin import credentials, messaging, initialize_app

from pushrelay.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

# Global Firebase app
_firebase_app = None

UNKNOWN_SENDER = "unknown"


class PushError(Exception):
    """Base class for push provider failures"""


class PushConfigurationError(PushError):
    """Firebase credentials are missing or unusable"""


class PushDeliveryError(PushError):
    """The provider rejected the message or could not be reached"""


def _load_credentials(settings: Settings) -> credentials.Certificate:
    if settings.FIREBASE_CREDENTIALS_PATH:
        return credentials.Certificate(settings.FIREBASE_CREDENTIALS_PATH)
    
    if settings.FIREBASE_PROJECT_ID and settings.FIREBASE_CLIENT_EMAIL and settings.FIREBASE_PRIVATE_KEY:
        return credentials.Certificate({
            "type": "service_account",
            "project_id": settings.FIREBASE_PROJECT_ID,
            "client_email": settings.FIREBASE_CLIENT_EMAIL,
            # Keys pasted into env files carry literal "\n" sequences
            "private_key": settings.FIREBASE_PRIVATE_KEY.replace("\\n", "\n"),
            "token_uri": "https://oauth2.googleapis.com/token",
        })
    
    raise PushConfigurationError(
        "Set FIREBASE_CREDENTIALS_PATH or FIREBASE_PROJECT_ID, "
        "FIREBASE_CLIENT_EMAIL and FIREBASE_PRIVATE_KEY"
    )


def initialize_firebase(settings: Optional[Settings] = None):
    """
    Initializes the Firebase Admin SDK once per process
    """
    global _firebase_app
    
    try:
        # Already initialized?
        _firebase_app = firebase_admin.get_app()
        logger.info("Firebase app already initialized")
        return _firebase_app
    except ValueError:
        # No default app yet
        pass
    
    try:
        cred = _load_credentials(settings or default_settings)
        _firebase_app = initialize_app(cred)
    except PushConfigurationError:
        raise
    except (ValueError, OSError) as e:
        raise PushConfigurationError(f"Invalid Firebase credentials: {e}") from e
    
    logger.info("Firebase Admin SDK initialized successfully")
    return _firebase_app


def dispatch_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC instant with millisecond precision, e.g. 2024-05-01T10:00:00.000Z"""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_message(
    fcm_token: str,
    title: str,
    body: str,
    sender_code: Optional[str] = None,
    timestamp: Optional[str] = None
) -> messaging.Message:
    """
    Builds the push message for one device
    
    Args:
        fcm_token: Firebase Cloud Messaging token of the device
        title: Notification title
        body: Notification text
        sender_code: Code of the sending device, "unknown" when not given
        timestamp: Dispatch time, generated now when not given
    """
    data: Dict[str, str] = {
        "senderCode": sender_code or UNKNOWN_SENDER,
        "timestamp": timestamp or dispatch_timestamp(),
    }
    return messaging.Message(
        notification=messaging.Notification(
            title=title,
            body=body,
        ),
        data=data,
        token=fcm_token,
    )


def send_push_notification(
    fcm_token: str,
    title: str,
    body: str,
    sender_code: Optional[str] = None
) -> str:
    """
    Sends a push notification to one device
    
    Returns:
        str: message id assigned by Firebase
    
    Raises:
        PushConfigurationError: Firebase could not be initialized
        PushDeliveryError: the message was not accepted
    """
    if _firebase_app is None:
        initialize_firebase()
    
    message = build_message(fcm_token, title, body, sender_code)
    
    try:
        response = messaging.send(message, app=_firebase_app)
    except Exception as e:
        logger.error(f"Error sending push notification to {fcm_token[:16]}...: {e}")
        raise PushDeliveryError(str(e)) from e
    
    logger.info(f"Successfully sent message: {response}")
    return response


def get_push_sender():
    """
    Dependency returning the function used to deliver notifications
    """
    return send_push_notification
