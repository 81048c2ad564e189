"""Error taxonomy shared by the job runner, file sync and web layers."""

from __future__ import annotations


class AgentError(RuntimeError):
    """Base class for errors reported back to the controller."""


class ValidationError(AgentError):
    """Raised when a request carries an unusable path or command."""


class NotFoundError(AgentError):
    """Raised for unknown job ids and missing files."""


class SpawnError(AgentError):
    """Raised when a child process could not be started."""


class ProcessFailure(AgentError):
    """Raised when a child process exits abnormally."""

    def __init__(self, returncode: int) -> None:
        self.returncode = returncode
        if returncode < 0:
            message = f"terminated by signal {-returncode}"
        else:
            message = f"exit status {returncode}"
        super().__init__(message)


class DecodeError(AgentError):
    """Raised when a transport payload is not valid base64."""


class FileIOError(AgentError):
    """Raised when the filesystem refuses a read, write or chmod."""


class PushError(AgentError):
    """Aggregate failure of a push; ``failures`` maps filename to reason."""

    def __init__(self, failures: dict[str, str]) -> None:
        self.failures = dict(failures)
        detail = "; ".join(f"{name}: {reason}" for name, reason in sorted(self.failures.items()))
        super().__init__(f"failed to write {len(self.failures)} file(s): {detail}")


class ShutdownError(AgentError):
    """Raised to waiters when the agent stops before their job finished."""


__all__ = [
    "AgentError",
    "DecodeError",
    "FileIOError",
    "NotFoundError",
    "ProcessFailure",
    "PushError",
    "ShutdownError",
    "SpawnError",
    "ValidationError",
]
