"""Public package surface for previewmd.

Exports ``main`` for programmatic CLI invocation.
Pager, browser and session internals live in submodules.
"""

from __future__ import annotations

__version__ = "0.1.0"


def main(*args, **kwargs):
    """Lazily import CLI entrypoint to keep package imports lightweight."""
    from .cli import main as _main

    return _main(*args, **kwargs)


__all__ = ["main", "__version__"]
