"""Launch commands as background jobs and wait for their outcome."""

from __future__ import annotations

import asyncio
import logging
import subprocess
import uuid
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Sequence

from runagent.core.errors import AgentError, ProcessFailure, ShutdownError, SpawnError, ValidationError
from runagent.core.paths import validate_workdir
from runagent.jobs.hub import NotificationHub
from runagent.jobs.registry import Job, JobRegistry, JobStatus

logger = logging.getLogger("runner")


def _spawn_and_wait(command: Sequence[str], workdir: Path) -> int:
    """Blocking: start the child and wait for it. Runs on a worker thread."""
    try:
        proc = subprocess.Popen(list(command), cwd=workdir)
    except (OSError, ValueError) as exc:
        raise SpawnError(f"Error when starting process: {exc}") from exc
    returncode = proc.wait()
    if returncode != 0:
        raise ProcessFailure(returncode)
    return returncode


class JobRunner:
    def __init__(self, registry: JobRegistry, hub: NotificationHub, *, job_workers: int = 64) -> None:
        self.registry = registry
        self.hub = hub
        self._executor = ThreadPoolExecutor(max_workers=job_workers, thread_name_prefix="runagent-job")
        self._tasks: set[asyncio.Task] = set()
        self._closed = False

    @property
    def active_count(self) -> int:
        return len(self._tasks)

    async def run(self, workdir: str, command: Sequence[str]) -> str:
        if self._closed:
            raise ShutdownError("agent is shutting down")
        path = validate_workdir(workdir)
        if not command:
            raise ValidationError("Command must not be empty")

        try:
            path.mkdir(parents=True, exist_ok=True)
        except (OSError, ValueError) as exc:
            logger.warning("workdir_create_failed %r: %s", workdir, exc)

        job = Job(id=str(uuid.uuid4()), command=tuple(command), workdir=workdir)
        self.registry.create(job)
        logger.info("[%s] Started job %s at %s", job.id, list(job.command), job.workdir)

        task = asyncio.create_task(self._supervise(job, path), name=f"runagent-job-{job.id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return job.id

    async def _supervise(self, job: Job, workdir: Path) -> None:
        loop = asyncio.get_running_loop()
        try:
            returncode = await loop.run_in_executor(self._executor, _spawn_and_wait, job.command, workdir)
        except ProcessFailure as exc:
            logger.error("[%s] Failed job %s at %s: %s", job.id, list(job.command), job.workdir, exc)
            self.registry.set_terminal(job.id, JobStatus.FAILED, returncode=exc.returncode, error=str(exc))
        except AgentError as exc:
            logger.error("[%s] Failed job %s at %s: %s", job.id, list(job.command), job.workdir, exc)
            self.registry.set_terminal(job.id, JobStatus.FAILED, error=str(exc))
        except Exception as exc:
            logger.exception("[%s] Failed job %s at %s", job.id, list(job.command), job.workdir)
            self.registry.set_terminal(job.id, JobStatus.FAILED, error=f"internal error: {exc}")
        else:
            logger.info("[%s] Succeeded job %s at %s", job.id, list(job.command), job.workdir)
            self.registry.set_terminal(job.id, JobStatus.SUCCEEDED, returncode=returncode)
        self.hub.notify()

    async def wait_for_terminal(self, job_id: str) -> JobStatus:
        with self.hub.subscribe() as sub:
            while True:
                status = self.registry.get(job_id).status
                if status.is_terminal:
                    return status
                if not await sub.wait():
                    # One last look: the job may have finished right before close.
                    status = self.registry.get(job_id).status
                    if status.is_terminal:
                        return status
                    raise ShutdownError(f"Run {job_id} still running while agent shuts down")

    async def aclose(self) -> None:
        """Stop accepting jobs and release waiters. Running children are left alone."""
        if self._closed:
            return
        self._closed = True
        self.hub.close()
        if self._tasks:
            logger.warning("shutdown_with_running_jobs count=%s", len(self._tasks))
        self._executor.shutdown(wait=False)
