"""In-memory job registry: the single source of truth for job lifecycle state."""

from __future__ import annotations

import dataclasses
import enum
import threading
from dataclasses import dataclass
from datetime import datetime, timezone

from runagent.core.errors import AgentError, NotFoundError


class JobStatus(str, enum.Enum):
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not JobStatus.RUNNING

    @property
    def wire_value(self) -> str:
        """Text returned by the wait endpoint."""
        if self is JobStatus.SUCCEEDED:
            return "ok"
        return self.value


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True, slots=True)
class Job:
    id: str
    command: tuple[str, ...]
    workdir: str
    status: JobStatus = JobStatus.RUNNING
    created_at: str = dataclasses.field(default_factory=_now_iso)
    finished_at: str | None = None
    returncode: int | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "command": list(self.command),
            "workdir": self.workdir,
            "status": self.status.value,
            "created_at": self.created_at,
            "finished_at": self.finished_at,
            "returncode": self.returncode,
            "error": self.error,
        }


class JobRegistry:
    """Maps job id to its latest :class:`Job` record.

    Records are immutable; every write swaps in a new record under the lock,
    so readers always get a whole snapshot. Entries are kept for the lifetime
    of the process.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._jobs: dict[str, Job] = {}

    def create(self, job: Job) -> None:
        if job.status is not JobStatus.RUNNING:
            raise ValueError(f"new job {job.id} must start as running, got {job.status.value}")
        with self._lock:
            if job.id in self._jobs:
                raise AgentError(f"Run {job.id} already exists")
            self._jobs[job.id] = job

    def get(self, job_id: str) -> Job:
        with self._lock:
            job = self._jobs.get(job_id)
        if job is None:
            raise NotFoundError(f"Run {job_id} not found")
        return job

    def set_terminal(
        self,
        job_id: str,
        status: JobStatus,
        *,
        returncode: int | None = None,
        error: str | None = None,
    ) -> Job:
        if not status.is_terminal:
            raise ValueError(f"status {status.value} is not terminal")
        with self._lock:
            current = self._jobs.get(job_id)
            if current is None:
                raise NotFoundError(f"Run {job_id} not found")
            if current.status.is_terminal:
                return current
            updated = dataclasses.replace(
                current,
                status=status,
                finished_at=_now_iso(),
                returncode=returncode,
                error=error,
            )
            self._jobs[job_id] = updated
            return updated

    def list_jobs(self) -> list[Job]:
        with self._lock:
            jobs = list(self._jobs.values())
        return sorted(jobs, key=lambda j: j.created_at)

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)
