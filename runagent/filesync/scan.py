from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List, Optional


def safe_rel_path(value: str):
    return str(Path(value).as_posix()).lstrip("/")


def scan_files(local_root: str, exclude_dirs: Optional[List[str]] = None) -> Dict[str, Path]:
    """Return ``{"a/b.txt": Path(...)}`` for every regular file under ``local_root``.

    Directories whose name is in ``exclude_dirs`` are not descended into.
    """

    base = Path(local_root)
    if not base.exists():
        return {}

    excludes = set(exclude_dirs or [])
    files: Dict[str, Path] = {}

    for root, dirnames, filenames in os.walk(base):
        dirnames[:] = [d for d in dirnames if d not in excludes]
        root_path = Path(root)
        for name in filenames:
            full = root_path / name
            if not full.is_file():
                continue
            rel = safe_rel_path(str(full.relative_to(base)))
            files[rel] = full
    return files


def is_executable(path: Path) -> bool:
    return bool(path.stat().st_mode & 0o111)
