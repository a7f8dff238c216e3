"""Queue of post-commit side effects awaiting reconciliation"""

import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from ..models.reconciliation import ReconciliationTask, TaskKind


class ReconciliationDatabase:
    """In-memory reconciliation tasks, one per (order, kind)"""

    def __init__(self):
        self.tasks: dict[str, ReconciliationTask] = {}
        self._lock = threading.Lock()

    def record_failure(
        self,
        order_id: str,
        user_id: str,
        kind: TaskKind,
        error: str,
        payload: Optional[dict[str, Any]] = None,
    ) -> ReconciliationTask:
        """Open a task, or bump the attempt count of the existing one"""
        now = datetime.now(timezone.utc)
        with self._lock:
            task = next(
                (t for t in self.tasks.values() if t.order_id == order_id and t.kind == kind),
                None,
            )
            if task:
                task.attempts += 1
                task.last_error = error
                task.resolved = False
                task.updated_at = now
                return task

            task = ReconciliationTask(
                task_id=str(uuid.uuid4()),
                order_id=order_id,
                user_id=user_id,
                kind=kind,
                payload=payload or {},
                last_error=error,
                created_at=now,
                updated_at=now,
            )
            self.tasks[task.task_id] = task
            return task

    def mark_resolved(self, task_id: str) -> Optional[ReconciliationTask]:
        with self._lock:
            task = self.tasks.get(task_id)
            if task:
                task.resolved = True
                task.last_error = None
                task.updated_at = datetime.now(timezone.utc)
            return task

    def list_open(self) -> list[ReconciliationTask]:
        with self._lock:
            tasks = [t for t in self.tasks.values() if not t.resolved]
        tasks.sort(key=lambda t: t.created_at)
        return tasks


# Singleton instance
reconciliation_db = ReconciliationDatabase()
