from __future__ import annotations

from pathlib import Path

from runagent.core.errors import ValidationError


def validate_workdir(workdir: str) -> Path:
    """Workdirs must be absolute and free of home-directory shorthand."""
    if "~" in workdir or not workdir.startswith("/"):
        raise ValidationError(f"Path must be absolute: {workdir!r}")
    return Path(workdir)
