"""WebSocket endpoint for live ingestion job progress.

A client connects to ``/ws/jobs/{job_id}`` and receives JSON messages
``{"job_id", "status", "progress", "message"}``: first the current
snapshot, then one message per update published by the job tracker.

    Client                               Server
    ──────                               ──────
    new WebSocket(url)        ──────→    accept(), register_listener()
                              ←──────    current snapshot
                              ←──────    update ... update
    close()                   ──────→    unregister_listener()
"""

from __future__ import annotations

import contextlib

import structlog
from fastapi import WebSocket, WebSocketDisconnect

from inframind.models.ingestion import JobStatus
from inframind.pipeline.progress_tracker import ProgressTracker
from inframind.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


async def websocket_job_progress(websocket: WebSocket, job_id: str) -> None:
    """Push progress updates for *job_id* until the client disconnects."""
    progress_tracker: ProgressTracker = websocket.app.state.progress_tracker

    await websocket.accept()
    _logger.info("websocket_connected", job_id=job_id)

    async def _on_progress(
        jid: str,
        status: JobStatus,
        progress: int,
        message: str,
    ) -> None:
        # The socket may close between an update and this send; the
        # finally block below unregisters the listener.
        with contextlib.suppress(Exception):
            await websocket.send_json(
                {
                    "job_id": jid,
                    "status": status.value,
                    "progress": progress,
                    "message": message,
                }
            )

    progress_tracker.register_listener(job_id, _on_progress)

    try:
        status = progress_tracker.get_status(job_id)
        await websocket.send_json({"job_id": job_id, **status})

        while True:
            await websocket.receive_text()

    except WebSocketDisconnect:
        _logger.info("websocket_disconnected", job_id=job_id)

    finally:
        progress_tracker.unregister_listener(job_id, _on_progress)
