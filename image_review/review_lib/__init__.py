"""Shared helpers for the image review toolchain."""

from . import config, log, imaging, models, scanner, store, workflow, reporting, view, session  # noqa: F401

__all__ = [
    "config",
    "log",
    "imaging",
    "models",
    "scanner",
    "store",
    "workflow",
    "reporting",
    "view",
    "session",
]
