import logging
from typing import Any

from arq import cron
from arq.connections import RedisSettings

from newsletter.core.config import settings
from newsletter.core.database import SessionLocal
from newsletter.repositories.idempotency_repository import IdempotencyRepository
from newsletter.services.email_client import EmailClient
from newsletter.services.issue_delivery_dispatcher import IssueDeliveryDispatcher

logger = logging.getLogger(__name__)

redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)


async def deliver_newsletter_issues_task(ctx: dict[str, Any]) -> int:
    """Background task: make one pass over the issue delivery queue.

    Runs every minute. Several workers may run it at once; each claims
    different tasks. Each pending task is tried at most once per run, and at
    most DISPATCHER_CRON_BATCH_SIZE sends are attempted so a large backlog is
    spread over several runs.
    """
    dispatcher = IssueDeliveryDispatcher(EmailClient.from_settings(), session_factory=SessionLocal)
    count = dispatcher.drain(max_tasks=settings.DISPATCHER_CRON_BATCH_SIZE)
    if count > 0:
        logger.info("Delivered %d newsletter emails", count)
    return count


async def delete_expired_idempotency_records_task(ctx: dict[str, Any]) -> int:
    """Background task: delete idempotency records older than the retention window.

    Runs hourly.
    """
    db = SessionLocal()
    try:
        repo = IdempotencyRepository(db)
        count = repo.delete_expired(max_age_hours=settings.IDEMPOTENCY_TTL_HOURS)
        if count > 0:
            logger.info("Deleted %d expired idempotency records", count)
        return count
    finally:
        db.close()


class WorkerSettings:
    functions = [
        deliver_newsletter_issues_task,
        delete_expired_idempotency_records_task,
    ]
    cron_jobs = [
        cron(deliver_newsletter_issues_task, minute=set(range(60)), run_at_startup=True),
        cron(delete_expired_idempotency_records_task, minute={0}),  # hourly
    ]
    redis_settings = redis_settings
