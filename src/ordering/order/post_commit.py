"""Post-commit task queue.

Side effects that follow a committed order (promotion usage, loyalty points,
referral rewards, gamification) are queued here instead of being called
inline by the writer. Draining the queue runs every task, each in
isolation: a failing task is logged and recorded in the outcome list, and
the remaining tasks still run. Nothing raised by a task reaches the caller
of ``create_order``.
"""

from collections.abc import Callable
from dataclasses import dataclass

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class TaskOutcome:
    name: str
    succeeded: bool
    error: str | None = None


class PostCommitQueue:
    def __init__(self):
        self._tasks: list[tuple[str, Callable, tuple, dict]] = []

    def __len__(self) -> int:
        return len(self._tasks)

    def enqueue(self, name: str, task: Callable, *args, **kwargs) -> None:
        self._tasks.append((name, task, args, kwargs))

    def drain(self) -> list[TaskOutcome]:
        tasks, self._tasks = self._tasks, []
        outcomes = []
        for name, task, args, kwargs in tasks:
            try:
                task(*args, **kwargs)
            except Exception as exc:
                logger.warning("Post-commit task failed (non-blocking)", task=name, error=str(exc), exc_info=True)
                outcomes.append(TaskOutcome(name=name, succeeded=False, error=str(exc)))
            else:
                outcomes.append(TaskOutcome(name=name, succeeded=True))
        return outcomes
