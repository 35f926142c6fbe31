"""Runtime orchestration: state, routing, rendering and the main loop.

Submodules are imported lazily so that ``lazyjj.runtime.config`` can be used
by the views without pulling in the whole runtime.
"""

from __future__ import annotations


def run_app(*args, **kwargs):
    """Lazily import the app entrypoint to avoid package-import cycles."""
    from .app import run_app as _run_app

    return _run_app(*args, **kwargs)


__all__ = ["run_app"]
