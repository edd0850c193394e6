"""Detached background work that must not delay the request that triggered it."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set


class BackgroundTaskRunner:
    """Runs fire-and-forget coroutines on the current event loop.

    Each job gets its own deadline, independent of any request. Failures go
    to the log and nowhere else: they are never raised to the submitter and
    never retried.
    """

    def __init__(
        self,
        timeout_seconds: float = 3.0,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize task runner.

        Args:
            timeout_seconds: Deadline applied to every submitted job
            logger: Optional logger
        """
        self.timeout_seconds = timeout_seconds
        self.logger = logger or logging.getLogger(__name__)
        self._tasks: Set[asyncio.Task] = set()
        self._closed = False

    @property
    def pending(self) -> int:
        """Number of jobs still running."""
        return len(self._tasks)

    def submit(self, name: str, job: Callable[[], Awaitable]) -> Optional[asyncio.Task]:
        """Schedule ``job()`` in the background.

        Args:
            name: Label used in log lines
            job: Zero-argument callable returning the coroutine to run

        Returns:
            The scheduled task, or None if the runner is closed
        """
        if self._closed:
            self.logger.warning(f"Task runner closed, dropping background job {name}")
            return None

        task = asyncio.get_running_loop().create_task(self._run(name, job), name=name)
        # Strong reference until done, otherwise the loop may drop the task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, name: str, job: Callable[[], Awaitable]) -> None:
        try:
            await asyncio.wait_for(job(), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            self.logger.warning(
                f"Background job {name} timed out after {self.timeout_seconds}s"
            )
        except asyncio.CancelledError:
            self.logger.warning(f"Background job {name} cancelled")
            raise
        except Exception as e:
            self.logger.error(f"Background job {name} failed: {e}")

    async def drain(self) -> None:
        """Wait for every job submitted so far to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        """Stop accepting work and wait for in-flight jobs."""
        self._closed = True
        if self._tasks:
            self.logger.info(f"Waiting for {len(self._tasks)} background jobs")
        await self.drain()
