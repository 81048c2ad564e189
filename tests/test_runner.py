from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import pytest

from runagent.core.errors import NotFoundError, ShutdownError, ValidationError
from runagent.jobs.hub import NotificationHub
from runagent.jobs.registry import JobRegistry, JobStatus
from runagent.jobs.runner import JobRunner


def _python(code: str) -> list[str]:
    return [sys.executable, "-c", code]


def _run_and_wait(workdir: str, command: list[str]) -> tuple[JobStatus, JobRegistry, str]:
    async def scenario():
        registry = JobRegistry()
        runner = JobRunner(registry, NotificationHub(), job_workers=2)
        try:
            job_id = await runner.run(workdir, command)
            status = await runner.wait_for_terminal(job_id)
        finally:
            await runner.aclose()
        return status, registry, job_id

    return asyncio.run(scenario())


def test_exit_zero_succeeds_and_runs_in_workdir(tmp_path: Path):
    workdir = tmp_path / "work" / "nested"
    status, registry, job_id = _run_and_wait(
        str(workdir),
        _python("open('marker.txt', 'w').write('here')"),
    )

    assert status is JobStatus.SUCCEEDED
    assert (workdir / "marker.txt").read_text() == "here"
    job = registry.get(job_id)
    assert job.returncode == 0
    assert job.finished_at is not None


def test_nonzero_exit_fails(tmp_path: Path):
    status, registry, job_id = _run_and_wait(str(tmp_path), _python("raise SystemExit(3)"))

    assert status is JobStatus.FAILED
    assert registry.get(job_id).returncode == 3
    assert registry.get(job_id).error == "exit status 3"


def test_signal_termination_fails(tmp_path: Path):
    status, registry, job_id = _run_and_wait(
        str(tmp_path),
        _python("import os, signal; os.kill(os.getpid(), signal.SIGKILL)"),
    )

    assert status is JobStatus.FAILED
    assert registry.get(job_id).error == "terminated by signal 9"


def test_missing_executable_is_a_job_failure_not_an_error(tmp_path: Path):
    status, registry, job_id = _run_and_wait(str(tmp_path), [str(tmp_path / "no-such-binary")])

    assert status is JobStatus.FAILED
    assert "Error when starting process" in registry.get(job_id).error


def test_uncreatable_workdir_is_swallowed_then_job_fails(tmp_path: Path):
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")

    status, _registry, _job_id = _run_and_wait(str(blocker / "sub"), _python("pass"))

    assert status is JobStatus.FAILED


def test_workdir_with_null_byte_gets_a_job_that_fails(tmp_path: Path):
    status, registry, job_id = _run_and_wait(str(tmp_path) + "/a\x00b", _python("pass"))

    assert status is JobStatus.FAILED
    assert "Error when starting process" in registry.get(job_id).error


@pytest.mark.parametrize(
    "workdir, command",
    [
        ("relative/path", ["/bin/true"]),
        ("~/work", ["/bin/true"]),
        ("/tmp/~user", ["/bin/true"]),
        ("/tmp/x", []),
    ],
)
def test_invalid_requests_create_no_job(workdir: str, command: list[str]):
    async def scenario():
        registry = JobRegistry()
        runner = JobRunner(registry, NotificationHub(), job_workers=1)
        try:
            with pytest.raises(ValidationError):
                await runner.run(workdir, command)
        finally:
            await runner.aclose()
        return len(registry)

    assert asyncio.run(scenario()) == 0


def test_wait_on_unknown_id_raises_immediately():
    async def scenario():
        runner = JobRunner(JobRegistry(), NotificationHub(), job_workers=1)
        try:
            with pytest.raises(NotFoundError):
                await asyncio.wait_for(runner.wait_for_terminal("never-submitted"), timeout=1)
        finally:
            await runner.aclose()

    asyncio.run(scenario())


def test_concurrent_waiters_observe_same_outcome(tmp_path: Path):
    async def scenario():
        hub = NotificationHub()
        runner = JobRunner(JobRegistry(), hub, job_workers=2)
        try:
            slow = await runner.run(str(tmp_path), _python("import time; time.sleep(0.3)"))
            fast = await runner.run(str(tmp_path), _python("raise SystemExit(1)"))
            results = await asyncio.gather(
                *(runner.wait_for_terminal(slow) for _ in range(5)),
                runner.wait_for_terminal(fast),
            )
        finally:
            await runner.aclose()
        return results, hub.sent_count

    results, sent = asyncio.run(scenario())

    assert results[:5] == [JobStatus.SUCCEEDED] * 5
    assert results[5] is JobStatus.FAILED
    assert sent == 2


def test_wait_after_completion_returns_without_signal(tmp_path: Path):
    async def scenario():
        runner = JobRunner(JobRegistry(), NotificationHub(), job_workers=1)
        try:
            job_id = await runner.run(str(tmp_path), _python("pass"))
            first = await runner.wait_for_terminal(job_id)
            second = await asyncio.wait_for(runner.wait_for_terminal(job_id), timeout=1)
        finally:
            await runner.aclose()
        return first, second

    assert asyncio.run(scenario()) == (JobStatus.SUCCEEDED, JobStatus.SUCCEEDED)


def test_shutdown_releases_waiters_of_running_jobs(tmp_path: Path):
    async def scenario():
        runner = JobRunner(JobRegistry(), NotificationHub(), job_workers=1)
        job_id = await runner.run(str(tmp_path), _python("import time; time.sleep(0.5)"))
        waiter = asyncio.create_task(runner.wait_for_terminal(job_id))
        await asyncio.sleep(0.05)
        await runner.aclose()
        with pytest.raises(ShutdownError):
            await waiter
        with pytest.raises(ShutdownError):
            await runner.run(str(tmp_path), _python("pass"))

    asyncio.run(scenario())


def test_job_lifecycle_is_logged_with_job_id(tmp_path: Path, caplog):
    caplog.set_level(logging.INFO, logger="runner")

    _status, _registry, job_id = _run_and_wait(str(tmp_path), _python("pass"))

    messages = [r.getMessage() for r in caplog.records if r.name == "runner"]
    assert any(m.startswith(f"[{job_id}] Started job") for m in messages)
    assert any(m.startswith(f"[{job_id}] Succeeded job") for m in messages)
