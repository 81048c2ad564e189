"""Controller-side client for a running agent."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

import requests

from runagent.core.fingerprint import fingerprint_file
from runagent.filesync.scan import is_executable, scan_files
from runagent.filesync.service import decode_payload, encode_payload


class AgentClientError(RuntimeError):
    def __init__(self, status_code: int, body: str, path: str):
        self.status_code = status_code
        self.body = body
        self.path = path
        super().__init__(f"{path} -> HTTP {status_code}: {body.strip()}")


class AgentClient:
    def __init__(self, base_url: str, timeout: float = 30.0, session: Any = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()

    def _check(self, res, path: str):
        if res.status_code >= 400:
            raise AgentClientError(res.status_code, res.text, path)
        return res

    def _get(self, path: str, timeout: Optional[float] = None):
        res = self.session.get(f"{self.base_url}{path}", timeout=timeout)
        return self._check(res, path)

    def _post(self, path: str, body: dict, timeout: Optional[float] = None):
        res = self.session.post(f"{self.base_url}{path}", json=body, timeout=timeout)
        return self._check(res, path)

    def ping(self) -> bool:
        return self._get("/ping", timeout=self.timeout).text == "pong"

    def run(self, workdir: str, cmd: Sequence[str]) -> str:
        return self._post("/run", {"workdir": workdir, "cmd": list(cmd)}, timeout=self.timeout).text

    def wait_run(self, job_id: str) -> bool:
        # Jobs have no time limit on the agent side, so neither does waiting.
        return self._get(f"/wait-run/{job_id}", timeout=None).text == "ok"

    def run_and_wait(self, workdir: str, cmd: Sequence[str]) -> bool:
        return self.wait_run(self.run(workdir, cmd))

    def job(self, job_id: str) -> dict[str, Any]:
        return self._get(f"/jobs/{job_id}", timeout=self.timeout).json()

    def jobs(self) -> list[dict[str, Any]]:
        return self._get("/jobs", timeout=self.timeout).json()

    def offer_files(self, workdir: str, hashes: Mapping[str, str]) -> set[str]:
        res = self._post("/offer-files", {"workdir": workdir, "hashes": dict(hashes)}, timeout=self.timeout)
        return set(res.json())

    def send_files(self, workdir: str, files: Mapping[str, tuple[bytes, bool]]) -> None:
        body = {
            "workdir": workdir,
            "files": {
                name: {"data": encode_payload(raw), "executable": executable}
                for name, (raw, executable) in files.items()
            },
        }
        self._post("/send-files", body, timeout=self.timeout)

    def get_file(self, workdir: str, path: str) -> bytes:
        res = self._post("/get-file", {"workdir": workdir, "path": path}, timeout=self.timeout)
        return decode_payload(res.text)

    def sync_dir(self, local_dir: str | Path, workdir: str, exclude_dirs: Optional[list[str]] = None) -> list[str]:
        """Upload the files under ``local_dir`` that the agent does not already have.

        Returns the relative paths that were sent, sorted.
        """
        local = scan_files(str(local_dir), exclude_dirs)
        hashes = {rel: fingerprint_file(path) for rel, path in local.items()}
        needed = sorted(self.offer_files(workdir, hashes) & set(local))
        if not needed:
            return []
        files = {rel: (local[rel].read_bytes(), is_executable(local[rel])) for rel in needed}
        self.send_files(workdir, files)
        return needed
