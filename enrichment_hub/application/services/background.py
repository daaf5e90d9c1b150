"""Background task runner with bounded concurrency, retries and dead letters."""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from enrichment_hub.commons.infrastructure.documentdb.base import (
    DocumentDBBase,
    DocumentDBError,
)
from enrichment_hub.commons.settings.models import BackgroundSettings
from enrichment_hub.commons.telemetry import LogContext, get_logger
from enrichment_hub.domain.exceptions import ExternalServiceException

Operation = Callable[[], Awaitable[Any]]


@dataclass
class DeadLetter:
    """Record of a background task that gave up."""

    task: str
    key: str
    error: str
    error_type: str
    attempts: int
    id: str = field(default_factory=lambda: str(uuid4()))
    failed_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class BackgroundTaskRunner:
    """Runs work after the triggering request has been answered.

    Each submitted operation runs as an asyncio task. At most
    ``max_concurrency`` operations execute at once; waiting for a retry does
    not hold a slot. Exceptions matching ``retry_on`` are retried with
    exponential backoff, anything else fails immediately. A task that gives
    up is logged at error level and stored as a dead letter.

    Attempts of tasks submitted with ``exclusive=True`` never overlap with
    attempts of another exclusive task sharing the same name and key.
    """

    def __init__(
        self,
        settings: BackgroundSettings,
        document_db: DocumentDBBase | None = None,
        dead_letter_collection: str = "dead_letters",
    ) -> None:
        """Initialize the runner.

        Args:
            settings: Concurrency and retry settings.
            document_db: Store for dead letters. Without one, dead letters
                are only logged.
            dead_letter_collection: Collection dead letters are written to.
        """
        self._settings = settings
        self._document_db = document_db
        self._dead_letter_collection = dead_letter_collection
        self._semaphore = asyncio.Semaphore(settings.max_concurrency)
        self._tasks: set[asyncio.Task[None]] = set()
        self._key_locks: dict[str, asyncio.Lock] = {}
        self._key_lock_users: dict[str, int] = {}
        self._closed = False
        self._logger = get_logger(__name__)

    @property
    def pending(self) -> int:
        """Number of tasks not finished yet."""
        return len(self._tasks)

    def submit(
        self,
        name: str,
        key: str,
        operation: Operation,
        *,
        retry_on: tuple[type[BaseException], ...] = (ExternalServiceException,),
        exclusive: bool = False,
    ) -> asyncio.Task[None]:
        """Schedule an operation.

        Args:
            name: Task kind, e.g. ``dispatch`` or ``index_transcript``.
            key: Identifier of the subject, usually a video id.
            operation: Zero-argument coroutine factory; called once per attempt.
            retry_on: Exception types worth another attempt.
            exclusive: Serialize attempts with other exclusive tasks sharing
                ``name`` and ``key``.

        Returns:
            The scheduled asyncio task.

        Raises:
            RuntimeError: If the runner is shutting down.
        """
        if self._closed:
            raise RuntimeError("Background runner is shut down")

        task = asyncio.create_task(
            self._run(name, key, operation, retry_on, exclusive),
            name=f"{name}:{key}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(
        self,
        name: str,
        key: str,
        operation: Operation,
        retry_on: tuple[type[BaseException], ...],
        exclusive: bool,
    ) -> None:
        attempts = 0
        lock_key = f"{name}:{key}" if exclusive else None
        with LogContext(task=name, key=key):
            try:
                async for attempt in AsyncRetrying(
                    retry=retry_if_exception_type(retry_on),
                    stop=stop_after_attempt(self._settings.retry_attempts),
                    wait=wait_exponential(
                        multiplier=self._settings.retry_min_seconds,
                        min=self._settings.retry_min_seconds,
                        max=self._settings.retry_max_seconds,
                    ),
                    before_sleep=self._log_retry,
                    reraise=True,
                ):
                    with attempt:
                        attempts = attempt.retry_state.attempt_number
                        async with self._exclusive(lock_key), self._semaphore:
                            await operation()
            except asyncio.CancelledError:
                self._logger.warning("Background task cancelled")
                raise
            except Exception as e:  # noqa: BLE001
                await self._dead_letter(name, key, e, attempts)
                return

        self._logger.debug("Background task finished", extra={"attempts": attempts})

    @asynccontextmanager
    async def _exclusive(self, lock_key: str | None) -> AsyncIterator[None]:
        if lock_key is None:
            yield
            return

        lock = self._key_locks.setdefault(lock_key, asyncio.Lock())
        self._key_lock_users[lock_key] = self._key_lock_users.get(lock_key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._key_lock_users[lock_key] -= 1
            if not self._key_lock_users[lock_key]:
                del self._key_lock_users[lock_key]
                del self._key_locks[lock_key]

    def _log_retry(self, retry_state: Any) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        self._logger.warning(
            "Background task failed, retrying",
            extra={
                "attempt": retry_state.attempt_number,
                "error": str(exc),
                "sleep_seconds": round(retry_state.next_action.sleep, 2)
                if retry_state.next_action
                else None,
            },
        )

    async def _dead_letter(
        self, name: str, key: str, error: Exception, attempts: int
    ) -> None:
        letter = DeadLetter(
            task=name,
            key=key,
            error=str(error),
            error_type=type(error).__name__,
            attempts=attempts,
        )
        self._logger.error(
            "Background task gave up",
            exc_info=error,
            extra={"attempts": attempts, "error_type": letter.error_type},
        )
        if self._document_db is None:
            return
        try:
            await self._document_db.insert(self._dead_letter_collection, asdict(letter))
        except DocumentDBError:
            self._logger.exception("Could not store dead letter")

    async def join(self) -> None:
        """Wait until every submitted task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def drain(self, timeout: float | None = None) -> int:
        """Stop accepting work and wait for running tasks.

        Args:
            timeout: Seconds to wait; defaults to the configured shutdown
                timeout. Tasks still running afterwards are cancelled.

        Returns:
            Number of tasks that had to be cancelled.
        """
        self._closed = True
        if timeout is None:
            timeout = self._settings.shutdown_timeout_seconds
        if not self._tasks:
            return 0

        _, still_running = await asyncio.wait(list(self._tasks), timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            await asyncio.gather(*still_running, return_exceptions=True)
            self._logger.warning(
                "Cancelled unfinished background tasks",
                extra={"count": len(still_running)},
            )
        return len(still_running)
