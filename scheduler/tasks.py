# scheduler/tasks.py
import logging
from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.orm import Session
from database import SessionLocal
from subscription.services import SubscriptionService
from chat.services import chat_rate_limiter

logger = logging.getLogger(__name__)

def expire_lapsed_subscriptions(session_factory=SessionLocal) -> int:
    """Mark active subscriptions past expires_at as expired."""
    logger.info("Starting expire_lapsed_subscriptions task")
    db: Session = session_factory()
    expired = 0
    try:
        expired = SubscriptionService.expire_lapsed_subscriptions(db)
    except Exception as e:
        db.rollback()
        logger.error(f"Error in expire_lapsed_subscriptions: {str(e)}", exc_info=True)
    finally:
        db.close()
    logger.info("Finished expire_lapsed_subscriptions task")
    return expired

def prune_rate_limits() -> int:
    """Drop expired chat rate limit windows."""
    return chat_rate_limiter.prune()

def start_scheduler() -> BackgroundScheduler:
    """Start the background scheduler."""
    scheduler = BackgroundScheduler()
    scheduler.add_job(expire_lapsed_subscriptions, 'interval', minutes=15)
    scheduler.add_job(prune_rate_limits, 'interval', minutes=5)
    scheduler.start()
    return scheduler
