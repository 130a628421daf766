"""
Sync Coordinator

Pushes each local mutation to the remote store in the background.

DESIGN DECISION: Dispatch is a bounded queue drained by a fixed set of
worker tasks, not a loose fire-and-forget call per mutation. This gives:
1. Mutations that never wait on the network
2. A visible count of queued and in-flight work
3. A deterministic flush point (drain/close) at shutdown

Every failure, including a full queue, ends up in the PendingSyncQueue.
Nothing raised by the remote store ever reaches the mutation caller.

Per-operation states: QUEUED -> IN_FLIGHT -> SYNCED | FAILED.
"""

import asyncio
from typing import Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field

from myexpenses.audit import AuditLogger
from myexpenses.models.audit import AuditEventBuilder
from myexpenses.models.expense import (
    Expense,
    PendingSyncEntry,
    RetryResult,
    SyncOperation,
    SyncState,
)
from myexpenses.services.sync import RemoteSyncInterface
from myexpenses.sync.pending import PendingSyncQueue


logger = structlog.get_logger(__name__)


class SyncTask(BaseModel):
    """One background remote operation and where it is in its lifecycle."""
    model_config = ConfigDict(validate_assignment=True)

    operation: SyncOperation
    expense_id: str
    expense: Optional[Expense] = None
    state: SyncState = SyncState.QUEUED
    error: Optional[str] = Field(
        default=None,
        description="Failure message if the task ended FAILED"
    )


class SyncCoordinator:
    """
    Owns background dispatch and the pending sync queue.

    Workers are started lazily on the first dispatch, so the coordinator
    can be constructed outside a running event loop. When used from a new
    loop, the queue is rebuilt for that loop on the next dispatch.
    """

    def __init__(
        self,
        remote: RemoteSyncInterface,
        pending: Optional[PendingSyncQueue] = None,
        audit_logger: Optional[AuditLogger] = None,
        max_queued: int = 100,
        workers: int = 1,
    ):
        if max_queued < 1:
            raise ValueError("max_queued must be at least 1")
        if workers < 1:
            raise ValueError("workers must be at least 1")

        self._remote = remote
        self._pending = pending or PendingSyncQueue()
        self._audit_logger = audit_logger or AuditLogger()
        self._max_queued = max_queued
        self._worker_count = workers
        self._queue: asyncio.Queue[SyncTask] = asyncio.Queue(maxsize=max_queued)
        self._workers: list[asyncio.Task] = []
        self._in_flight = 0

    @property
    def remote(self) -> RemoteSyncInterface:
        return self._remote

    @property
    def pending(self) -> PendingSyncQueue:
        return self._pending

    @property
    def queued_count(self) -> int:
        return self._queue.qsize()

    @property
    def in_flight_count(self) -> int:
        return self._in_flight

    def _ensure_workers(self) -> None:
        loop = asyncio.get_running_loop()
        self._workers = [w for w in self._workers if not w.done() and w.get_loop() is loop]
        if not self._workers:
            # An asyncio.Queue binds to the first loop that waits on it
            self._queue = self._rebuild_queue()
        while len(self._workers) < self._worker_count:
            self._workers.append(loop.create_task(self._worker()))

    def _rebuild_queue(self) -> "asyncio.Queue[SyncTask]":
        """Fresh queue for the running loop, carrying over unprocessed tasks."""
        queue: asyncio.Queue[SyncTask] = asyncio.Queue(maxsize=self._max_queued)
        while not self._queue.empty():
            queue.put_nowait(self._queue.get_nowait())
        return queue

    async def dispatch(
        self,
        operation: SyncOperation,
        expense_id: str,
        expense: Optional[Expense] = None,
    ) -> SyncTask:
        """
        Queue a remote operation and return immediately.

        The returned task reports its state as the worker picks it up.
        """
        task = SyncTask(operation=operation, expense_id=expense_id, expense=expense)
        self._ensure_workers()

        try:
            self._queue.put_nowait(task)
        except asyncio.QueueFull:
            task.state = SyncState.FAILED
            task.error = "sync queue full"
            self._pending.enqueue(operation, expense_id, expense)
            await self._audit_logger.log(
                AuditEventBuilder.sync_queue_full(operation.value, expense_id, self._max_queued)
            )

        return task

    async def _perform(
        self,
        operation: SyncOperation,
        expense_id: str,
        expense: Optional[Expense],
    ) -> None:
        if operation == SyncOperation.DELETE:
            await self._remote.delete_expense(expense_id)
        else:
            await self._remote.sync_expense(expense)

    async def _execute(self, task: SyncTask) -> None:
        task.state = SyncState.IN_FLIGHT
        self._in_flight += 1
        try:
            await self._perform(task.operation, task.expense_id, task.expense)
        except Exception as e:
            task.state = SyncState.FAILED
            task.error = str(e)
            self._pending.enqueue(task.operation, task.expense_id, task.expense)
            await self._audit_logger.log(
                AuditEventBuilder.sync_failed(task.operation.value, task.expense_id, str(e))
            )
        else:
            task.state = SyncState.SYNCED
            await self._audit_logger.log(
                AuditEventBuilder.sync_succeeded(task.operation.value, task.expense_id)
            )
        finally:
            self._in_flight -= 1

    async def _worker(self) -> None:
        while True:
            task = await self._queue.get()
            try:
                await self._execute(task)
            except Exception as e:
                # _execute already routes remote failures; this guards the loop itself
                await self._audit_logger.log(
                    AuditEventBuilder.sync_worker_error(task.operation.value, task.expense_id, str(e))
                )
            finally:
                self._queue.task_done()

    async def _replay_entry(self, entry: PendingSyncEntry) -> None:
        try:
            await self._perform(entry.operation, entry.expense_id, entry.expense)
        except Exception as e:
            logger.warning(
                "sync_retry_failed",
                operation=entry.operation.value,
                expense_id=entry.expense_id,
                attempts=entry.attempts,
                error=str(e),
            )
            raise

    async def retry_pending(self) -> RetryResult:
        """Replay every pending entry once, oldest first."""
        result = await self._pending.replay(self._replay_entry)
        await self._audit_logger.log(
            AuditEventBuilder.retry_completed(result.success, result.failed, result.remaining)
        )
        return result

    async def drain(self) -> None:
        """Wait until every queued operation has finished (either way)."""
        if any(not worker.done() for worker in self._workers):
            await self._queue.join()

    async def close(self) -> None:
        """Drain the queue, then stop the workers."""
        await self.drain()
        loop = asyncio.get_running_loop()
        workers = [w for w in self._workers if w.get_loop() is loop]
        for worker in workers:
            worker.cancel()
        await asyncio.gather(*workers, return_exceptions=True)
        self._workers = []
