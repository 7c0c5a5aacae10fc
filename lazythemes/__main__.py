"""Module entrypoint for ``python -m lazythemes``.

Argument parsing and runtime setup happen in ``lazythemes.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
