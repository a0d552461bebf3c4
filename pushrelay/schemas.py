"""
Pydantic schemas for API requests and responses
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field, field_serializer, field_validator, model_validator


def _strings_only(value: Any) -> Optional[str]:
    """Non-string JSON values count as missing so they fail the same checks"""
    return value if isinstance(value, str) else None


# === Requests ===

class RelayRequest(BaseModel):
    """
    Lenient request body

    A JSON body that is not an object reads as empty, so the route reports its
    usual first validation error instead of a parsing failure.
    """

    @model_validator(mode="before")
    @classmethod
    def objects_only(cls, data: Any) -> Any:
        return data if isinstance(data, dict) else {}

    @field_validator("*", mode="before")
    @classmethod
    def strings_only(cls, value: Any) -> Optional[str]:
        return _strings_only(value)


class RegisterDeviceRequest(RelayRequest):
    """Body of POST /api/register-device"""
    code: Optional[str] = None
    fcm_token: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("fcmToken", "pushToken", "fcm_token"),
    )


class SendNotificationRequest(RelayRequest):
    """Body of POST /api/send-notification"""
    target_code: Optional[str] = Field(None, validation_alias=AliasChoices("targetCode", "target_code"))
    title: Optional[str] = None
    body: Optional[str] = None
    sender_code: Optional[str] = Field(None, validation_alias=AliasChoices("senderCode", "sender_code"))


# === Responses ===

class MessageResponse(BaseModel):
    message: str


class DeviceResponse(BaseModel):
    """Stored device record"""
    code: str
    fcm_token: str = Field(..., alias="fcmToken")
    created_at: datetime = Field(..., alias="createdAt")
    expires_at: datetime = Field(..., alias="expiresAt")

    @field_serializer("created_at", "expires_at")
    def serialize_datetime(self, dt: datetime, _info):
        """Serialize datetimes with a UTC marker"""
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.isoformat()

    class Config:
        populate_by_name = True


class RegisterDeviceResponse(MessageResponse):
    device: DeviceResponse


class PurgeResponse(MessageResponse):
    deleted: int


class HealthResponse(BaseModel):
    status: str
    app_name: str
    scheduler: str
