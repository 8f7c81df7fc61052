"""
Celery Application Configuration
Queue-based background execution of agent runs
"""

from celery import Celery
from kombu import Queue, Exchange

from launchpad.config import get_settings

settings = get_settings()

# Create Celery app
celery_app = Celery(
    "launchpad",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "launchpad.workers.tasks.agent_tasks",
    ]
)

# Celery configuration
celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # Result backend settings
    result_expires=86400,  # 24 hours

    # Task execution settings
    task_acks_late=True,  # Acknowledge after task completion
    task_reject_on_worker_lost=False,  # runs are never redelivered
    task_time_limit=900,  # 15 minutes max for a full sequence
    task_soft_time_limit=840,

    # Worker settings
    worker_prefetch_multiplier=1,  # Fair distribution
    worker_concurrency=4,

    # Queue configuration
    task_queues=(
        Queue("default", Exchange("default"), routing_key="default"),
        Queue("agents", Exchange("agents"), routing_key="agents"),
    ),

    task_default_queue="default",
    task_default_exchange="default",
    task_default_routing_key="default",

    # Route tasks to appropriate queues
    task_routes={
        "launchpad.workers.tasks.agent_tasks.*": {"queue": "agents"},
    },
)
