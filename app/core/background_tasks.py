"""
Background Task Management

Celery application for the service's periodic work. Celery beat triggers
the settlement sweep every ``SWEEP_INTERVAL_SECONDS``; a worker with the
embedded scheduler is enough to run it:

    celery -A app.core.background_tasks worker --beat --loglevel=info
"""

from dataclasses import asdict
from typing import Any, Dict, Optional

from celery import Celery
from celery.signals import setup_logging as celery_setup_logging

from app.config.settings import Settings, settings
from app.core.logging import get_logger, setup_logging
from app.services.background.settlement_sweep import run_configured_sweep

logger = get_logger(__name__)

SETTLEMENT_SWEEP_TASK = "app.tasks.settlement_sweep"


def create_celery_app(config: Optional[Settings] = None) -> Celery:
    """Build the Celery application and its beat schedule from settings."""
    config = config or settings
    broker_url = config.TASK_BROKER_URL or config.get_redis_url()
    result_backend = config.TASK_RESULT_BACKEND or config.get_redis_url()

    celery = Celery(
        'meeting_settlement_tasks',
        broker=broker_url,
        backend=result_backend,
    )

    celery.conf.update(
        task_serializer='json',
        accept_content=['json'],
        result_serializer='json',
        timezone='UTC',
        enable_utc=True,
        task_track_started=True,
        task_time_limit=config.TASK_TIMEOUT,
        worker_prefetch_multiplier=1,
        task_acks_late=True,
        broker_connection_retry_on_startup=True,
    )

    if config.ENABLE_PERIODIC_TASKS:
        celery.conf.beat_schedule = {
            'settlement-sweep': {
                'task': SETTLEMENT_SWEEP_TASK,
                'schedule': float(config.SWEEP_INTERVAL_SECONDS),
            },
        }

    return celery


celery_app = create_celery_app()


@celery_setup_logging.connect
def configure_worker_logging(**kwargs):
    setup_logging()


@celery_app.task(name=SETTLEMENT_SWEEP_TASK)
def settlement_sweep_task() -> Dict[str, Any]:
    """Flag new disputes and release verified payments."""
    report = run_configured_sweep()
    if report.errors:
        logger.warning(
            f"Settlement sweep finished with {len(report.errors)} failed steps",
            extra={"errors": report.errors},
        )
    return asdict(report)


__all__ = [
    'SETTLEMENT_SWEEP_TASK',
    'celery_app',
    'create_celery_app',
    'settlement_sweep_task',
]
