"""Single-node remote execution agent: run commands and sync files over HTTP."""

__version__ = "0.1.0"
