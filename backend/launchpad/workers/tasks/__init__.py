"""
Celery Tasks
"""

from .agent_tasks import run_agent_task, run_agent_sequence_task

__all__ = [
    "run_agent_task",
    "run_agent_sequence_task",
]
