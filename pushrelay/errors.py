"""
Error taxonomy shared by the request handlers
"""

from enum import Enum


class ErrorCode(str, Enum):
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_TARGET = "INVALID_TARGET"
    MISSING_TITLE = "MISSING_TITLE"
    MISSING_BODY = "MISSING_BODY"
    DEVICE_NOT_FOUND = "DEVICE_NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {
    ErrorCode.INVALID_INPUT: 400,
    ErrorCode.INVALID_TARGET: 400,
    ErrorCode.MISSING_TITLE: 400,
    ErrorCode.MISSING_BODY: 400,
    ErrorCode.DEVICE_NOT_FOUND: 404,
    ErrorCode.INTERNAL_ERROR: 500,
}


class RelayError(Exception):
    """
    Failure raised by a handler and rendered as {"error": message, "code": code}

    The message is a short fixed string that is safe to show to callers.
    """

    def __init__(self, code: ErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    @property
    def status_code(self) -> int:
        return self.code.status_code

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code.value}
