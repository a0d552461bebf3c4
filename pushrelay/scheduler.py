from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.orm import Session
import logging

from pushrelay import crud_devices
from pushrelay.config import Settings
from pushrelay.database import SessionLocal, get_engine

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler()


def purge_expired_devices_job(ttl_hours=None):
    """Deletes device records past their TTL"""
    db: Session = SessionLocal(bind=get_engine())
    try:
        deleted_count = crud_devices.purge_expired_devices(db, ttl_hours)
        if deleted_count > 0:
            logger.info(f"Expiry sweep removed {deleted_count} devices")
    except Exception as e:
        logger.error(f"Error during expiry sweep: {e}")
        db.rollback()
    finally:
        db.close()


def start_scheduler(settings: Settings):
    """
    Starts the expiry sweep every EXPIRY_SWEEP_INTERVAL_MINUTES
    """
    interval = settings.EXPIRY_SWEEP_INTERVAL_MINUTES
    
    scheduler.add_job(
        purge_expired_devices_job,
        'interval',
        minutes=interval,
        args=[settings.DEVICE_TTL_HOURS],
        id='purge_expired_devices',
        replace_existing=True
    )
    
    scheduler.start()
    logger.info(f"Scheduler started: expiry sweep every {interval} minutes")


def stop_scheduler():
    """Stops the scheduler"""
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Scheduler stopped")


def get_scheduler_status():
    """Returns scheduler state"""
    jobs_info = []
    if scheduler.running:
        for job in scheduler.get_jobs():
            jobs_info.append({
                "id": job.id,
                "next_run": str(job.next_run_time) if job.next_run_time else None
            })
    
    return {
        "running": scheduler.running,
        "jobs": jobs_info
    }
