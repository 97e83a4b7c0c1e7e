import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from arq import cron

from app.core.config import settings
from app.core.database import session_scope
from app.repositories.subscription_repository import SubscriptionRepository
from app.tasks import redis_settings

logger = logging.getLogger(__name__)


async def purge_terminal_subscriptions_task(ctx: dict[str, Any]) -> int:
    """Background task: delete ended subscriptions past the retention window.

    Only cancelled, completed and expired records are removed, and only once
    they have not been touched for ``subscription_retention_days``.

    Runs daily.
    """
    cutoff = datetime.now(UTC) - timedelta(days=settings.subscription_retention_days)
    with session_scope() as db:
        count = SubscriptionRepository(db).delete_terminal_before(cutoff)
    if count > 0:
        logger.info("Purged %d terminal subscriptions older than %s", count, cutoff.date())
    return count


class WorkerSettings:
    functions = [purge_terminal_subscriptions_task]
    cron_jobs = [
        cron(purge_terminal_subscriptions_task, hour=3, minute=0),  # daily at 03:00
    ]
    redis_settings = redis_settings
