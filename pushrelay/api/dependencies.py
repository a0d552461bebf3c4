"""
Shared FastAPI dependencies
"""

from fastapi import Request

from pushrelay.config import Settings


def get_settings(request: Request) -> Settings:
    """Settings the running app was built with"""
    return request.app.state.settings
