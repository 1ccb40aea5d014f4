"""Ingestion job state models.

An :class:`IngestionJob` tracks one ingestion request (a single file, a
batch of files, or one connector sync run) through the state machine::

    pending ──→ processing ──→ completed   (no errors)
                           └─→ failed      (one or more errors)

Jobs are frozen; every transition returns a new instance via
``model_copy(update=...)`` so a snapshot handed to a caller never changes
underneath it.  Transition methods refuse illegal moves with
:class:`~inframind.utils.errors.JobStateError`.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field

from inframind.utils.errors import JobStateError


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class JobStatus(str, Enum):  # noqa: UP042
    """Lifecycle states of an ingestion job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class JobKind(str, Enum):  # noqa: UP042
    UPLOAD = "upload"
    CONNECTOR_SYNC = "connector-sync"


_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.PROCESSING}),
    JobStatus.PROCESSING: frozenset({JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}


class ItemOutcome(BaseModel):
    """Result of attempting one item: whether it was processed, and any errors.

    A processed item may still carry errors (skipped chunks).  An item that
    failed outright has ``processed=False`` and exactly one error.
    """

    model_config = ConfigDict(frozen=True)

    item_name: str
    processed: bool
    document_id: int | None = None
    chunks_indexed: int = 0
    errors: list[str] = Field(default_factory=list)


class IngestionJob(BaseModel):
    """Immutable snapshot of an ingestion job."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    kind: JobKind = JobKind.UPLOAD
    source_type: str = "upload"
    status: JobStatus = JobStatus.PENDING
    total_items: int = Field(default=0, ge=0)
    processed_items: int = Field(default=0, ge=0)
    attempted_items: int = Field(default=0, ge=0)
    errors: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def progress(self) -> int:
        """Percent complete, 0-100.

        ``processed_items / total_items`` (rounded half up) while the job
        runs; 100 once it is terminal, since every item has then been
        attempted.
        """
        if self.status.is_terminal:
            return 100
        if self.total_items == 0:
            return 0
        return _round_half_up(self.processed_items / self.total_items * 100)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start_processing(self) -> IngestionJob:
        return self._transition(JobStatus.PROCESSING)

    def record(self, outcome: ItemOutcome) -> IngestionJob:
        """Fold one item outcome into the job."""
        if self.status is not JobStatus.PROCESSING:
            raise JobStateError(
                message=f"Cannot record items on a {self.status.value} job {self.id}"
            )
        if self.attempted_items >= self.total_items:
            raise JobStateError(
                message=f"Job {self.id} already attempted all {self.total_items} items"
            )
        return self.model_copy(
            update={
                "attempted_items": self.attempted_items + 1,
                "processed_items": self.processed_items + (1 if outcome.processed else 0),
                "errors": [*self.errors, *outcome.errors],
                "updated_at": _utcnow(),
            }
        )

    def finish(self) -> IngestionJob:
        """Move to ``completed`` or ``failed`` depending on recorded errors."""
        if self.attempted_items != self.total_items:
            raise JobStateError(
                message=(
                    f"Job {self.id} cannot finish: {self.attempted_items} of "
                    f"{self.total_items} items attempted"
                )
            )
        return self._transition(JobStatus.FAILED if self.errors else JobStatus.COMPLETED)

    def _transition(self, target: JobStatus) -> IngestionJob:
        if target not in _TRANSITIONS[self.status]:
            raise JobStateError(
                message=f"Illegal job transition {self.status.value} -> {target.value} ({self.id})"
            )
        return self.model_copy(update={"status": target, "updated_at": _utcnow()})


def _round_half_up(value: float) -> int:
    # round() is banker's rounding; 2.5 % should read as 3 %.
    return int(value + 0.5)
