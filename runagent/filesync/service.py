"""Hash-diff, push and pull of files under a job working directory.

The agent does not lock anything here: concurrent requests touching the same
path are the controller's problem.
"""

from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from runagent.core.errors import DecodeError, FileIOError, NotFoundError, PushError
from runagent.core.fingerprint import fingerprint_file
from runagent.core.paths import validate_workdir

logger = logging.getLogger("filesync")


@dataclass(slots=True)
class FilePayload:
    data: str
    executable: bool = False


def decode_payload(data: str) -> bytes:
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(f"invalid base64 payload: {exc}") from exc


def encode_payload(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


class FileSyncService:
    def __init__(self, executable_mode: int = 0o777) -> None:
        self.executable_mode = executable_mode

    def diff(self, workdir: str, expected: Mapping[str, str]) -> set[str]:
        """Names from ``expected`` whose local copy is missing or has other content."""
        root = validate_workdir(workdir)
        needed: set[str] = set()
        for filename, wanted in expected.items():
            path = root / filename
            if path.is_file():
                try:
                    if fingerprint_file(path) == wanted.lower():
                        continue
                except OSError as exc:
                    logger.warning("fingerprint_failed %s: %s", path, exc)
            needed.add(filename)
        logger.info("offer workdir=%s offered=%s needed=%s", workdir, len(expected), len(needed))
        return needed

    def _write_one(self, root: Path, filename: str, payload: FilePayload) -> None:
        path = root / filename
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except (OSError, ValueError):
            # write_bytes below reports the real problem
            pass
        raw = decode_payload(payload.data)
        try:
            path.write_bytes(raw)
            if payload.executable:
                path.chmod(self.executable_mode)
        except OSError as exc:
            raise FileIOError(f"cannot write {path}: {exc.strerror or exc}") from exc
        except ValueError as exc:
            raise FileIOError(f"cannot write {path!r}: {exc}") from exc

    def push(self, workdir: str, files: Mapping[str, FilePayload]) -> list[str]:
        """Write every file; failures are collected and raised together at the end."""
        root = validate_workdir(workdir)
        written: list[str] = []
        failures: dict[str, str] = {}
        for filename, payload in files.items():
            try:
                self._write_one(root, filename, payload)
            except (DecodeError, FileIOError) as exc:
                logger.error("push_failed workdir=%s file=%s: %s", workdir, filename, exc)
                failures[filename] = str(exc)
                continue
            written.append(filename)
        logger.info("push workdir=%s written=%s failed=%s", workdir, len(written), len(failures))
        if failures:
            raise PushError(failures)
        return written

    def pull(self, workdir: str, path: str) -> str:
        full = validate_workdir(workdir) / path
        try:
            raw = full.read_bytes()
        except FileNotFoundError as exc:
            raise NotFoundError(f"File {full} not found") from exc
        except IsADirectoryError as exc:
            raise FileIOError(f"{full} is a directory") from exc
        except OSError as exc:
            raise FileIOError(f"cannot read {full}: {exc.strerror or exc}") from exc
        except ValueError as exc:
            raise FileIOError(f"cannot read {full!r}: {exc}") from exc
        logger.info("pull workdir=%s path=%s bytes=%s", workdir, path, len(raw))
        return encode_payload(raw)
