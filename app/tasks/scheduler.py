import logging

from app.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="app.tasks.scheduler.process_scheduled_pages")
def process_scheduled_pages() -> dict:
    """Periodic task that publishes due scheduled pages and archives expired ones.

    Each page is committed on its own; pages held back by an approval guard or
    a concurrent edit are skipped and retried on the next run.
    """
    from app.db import SessionLocal
    from app.services.cms_scheduler import run_tick

    db = SessionLocal()
    try:
        return run_tick(db)
    except Exception as e:
        db.rollback()
        logger.exception("Failed to process scheduled pages: %s", e)
        raise
    finally:
        db.close()
