"""
FastAPI application for the push code relay
"""

from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pushrelay.config import Settings, settings as default_settings
from pushrelay.database import dispose_engine, init_db
from pushrelay.errors import ErrorCode, RelayError
from pushrelay.api.routes import router as status_router
from pushrelay.api.device_routes import router as device_router
from pushrelay.api.notification_routes import router as notification_router
from pushrelay.api.maintenance_routes import router as maintenance_router
from pushrelay.scheduler import start_scheduler, stop_scheduler
from pushrelay.services.firebase_service import initialize_firebase

# Logging setup
logging.basicConfig(
    level=default_settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def build_lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Runs on server startup and shutdown
        """
        # Startup
        logger.info("=" * 60)
        logger.info(f"Starting {settings.APP_NAME}...")
        logger.info("=" * 60)
        
        init_db(settings)
        logger.info("✓ Database initialized")
        
        # Registration keeps working without Firebase; sends fail with 500
        try:
            initialize_firebase(settings)
            logger.info("✓ Firebase Admin SDK initialized")
        except Exception as e:
            logger.error(f"✗ Firebase initialization error: {e}")
        
        if settings.EXPIRY_SWEEP_ENABLED:
            start_scheduler(settings)
        else:
            logger.info("ℹ️  Expiry sweep disabled (EXPIRY_SWEEP_ENABLED=false)")
        
        if settings.DEV_MODE:
            logger.warning("DEV_MODE is on: maintenance endpoints are exposed")
        
        logger.info("=" * 60)
        
        yield
        
        # Shutdown
        logger.info(f"Stopping {settings.APP_NAME}...")
        stop_scheduler()
        dispose_engine()
        logger.info("✓ Database connections closed")
    
    return lifespan


async def relay_error_handler(request: Request, exc: RelayError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Bodies that are not JSON fail the route's first check
_UNREADABLE_BODY_ERRORS = {
    "/send-notification": RelayError(ErrorCode.INVALID_TARGET, "Invalid target code"),
}


async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Rejected malformed body on {request.url.path}: {exc.errors()}")
    path = request.url.path[len(request.app.state.settings.API_PREFIX):]
    error = _UNREADABLE_BODY_ERRORS.get(path, RelayError(ErrorCode.INVALID_INPUT, "Invalid input"))
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Builds the application; maintenance routes exist only with DEV_MODE
    """
    settings = settings or default_settings
    
    app = FastAPI(
        title=settings.APP_NAME,
        description="Relays push notifications to devices registered under a short code",
        version="1.0.0",
        lifespan=build_lifespan(settings)
    )
    app.state.settings = settings
    
    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    
    app.add_exception_handler(RelayError, relay_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    
    app.include_router(status_router, tags=["Status"])
    app.include_router(device_router, prefix=settings.API_PREFIX)
    app.include_router(notification_router, prefix=settings.API_PREFIX)
    
    if settings.DEV_MODE:
        app.include_router(maintenance_router, prefix=settings.API_PREFIX)
    
    return app


app = create_app()


def run():
    import uvicorn
    uvicorn.run(
        "pushrelay.main:app",
        host=default_settings.HOST,
        port=default_settings.PORT,
        reload=default_settings.DEV_MODE
    )


# Run with: uvicorn pushrelay.main:app --reload
if __name__ == "__main__":
    run()
