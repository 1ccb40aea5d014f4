"""Ingestion job progress tracking with callback-based listener notification.

Holds the latest status/progress snapshot for each ingestion job and
broadcasts every update to the listener callbacks registered for that
job.  Listeners are keyed by job id so concurrent jobs never see each
other's updates.

    IngestionJobTracker ──update()──→ ProgressTracker ──callback()──→ WebSocket handler

A listener that raises is logged and skipped; a dropped WebSocket must not
stall ingestion.  Callbacks may be sync or async.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from inframind.models.ingestion import JobStatus
from inframind.utils.logging import get_logger


@dataclass
class _JobProgress:
    """Internal snapshot of a single job's progress."""

    status: JobStatus = JobStatus.PENDING
    progress: int = 0
    message: str = ""


class ProgressTracker:
    """Tracks and broadcasts ingestion progress via callbacks.

    Listener callbacks receive ``(job_id, status, progress, message)``.
    """

    def __init__(self) -> None:
        self._statuses: dict[str, _JobProgress] = {}
        self._listeners: dict[str, list[Callable]] = {}
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def update(
        self,
        job_id: str,
        status: JobStatus,
        progress: int,
        message: str,
    ) -> None:
        """Record a progress update and notify the job's listeners.

        Parameters
        ----------
        job_id:
            The ingestion job to update.
        status:
            The job's current status.
        progress:
            Completion percentage (0 – 100).
        message:
            Human-readable status message.
        """
        progress = max(0, min(100, progress))
        self._statuses[job_id] = _JobProgress(status=status, progress=progress, message=message)

        self._logger.debug(
            "progress_update",
            job_id=job_id,
            status=status.value,
            progress=progress,
            message=message,
        )
        await self._notify_listeners(job_id, status, progress, message)

    def register_listener(self, job_id: str, callback: Callable) -> None:
        """Register a callback to receive progress updates for a job."""
        listeners = self._listeners.setdefault(job_id, [])
        if callback not in listeners:
            listeners.append(callback)
            self._logger.debug(
                "listener_registered",
                job_id=job_id,
                total_listeners=len(listeners),
            )

    def unregister_listener(self, job_id: str, callback: Callable) -> None:
        """Remove a previously registered callback for a job."""
        listeners = self._listeners.get(job_id, [])
        if callback in listeners:
            listeners.remove(callback)
        if not listeners:
            self._listeners.pop(job_id, None)

    def get_status(self, job_id: str) -> dict:
        """Return ``status``, ``progress`` and ``message`` for a job.

        Jobs not yet seen report ``pending`` at 0 %.
        """
        snapshot = self._statuses.get(job_id) or _JobProgress()
        return {
            "status": snapshot.status.value,
            "progress": snapshot.progress,
            "message": snapshot.message,
        }

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _notify_listeners(
        self,
        job_id: str,
        status: JobStatus,
        progress: int,
        message: str,
    ) -> None:
        for callback in list(self._listeners.get(job_id, [])):
            try:
                result = callback(job_id, status, progress, message)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:
                self._logger.warning(
                    "listener_callback_error",
                    job_id=job_id,
                    error=str(exc),
                    callback=getattr(callback, "__name__", repr(callback)),
                )
