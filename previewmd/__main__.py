"""Module entrypoint for ``python -m previewmd``.

This keeps module-mode execution behavior identical to the ``pmd`` script.
All argument parsing and session setup happen in ``previewmd.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
