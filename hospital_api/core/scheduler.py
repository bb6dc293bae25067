import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from hospital_api.core import config
from hospital_api import database
from hospital_api.services.inventory import low_stock_query

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler()


def check_low_stock():
    db = database.SessionLocal()
    try:
        items = low_stock_query(db).all()
        for item in items:
            logger.warning(
                "Low stock: %s (id %s) has %s %s, reorder level %s",
                item.name, item.id, item.quantity, item.unit, item.reorder_level,
            )
        return len(items)
    finally:
        db.close()


def start_scheduler():
    if scheduler.running:
        return
    # Sweep inventory for items at or below their reorder level
    scheduler.add_job(
        check_low_stock,
        trigger=IntervalTrigger(minutes=config.LOW_STOCK_CHECK_MINUTES),
        id="check_low_stock",
        replace_existing=True,
    )
    scheduler.start()
    logger.info("Scheduler started; low stock check every %s minutes", config.LOW_STOCK_CHECK_MINUTES)


def shutdown_scheduler():
    if scheduler.running:
        scheduler.shutdown(wait=False)
