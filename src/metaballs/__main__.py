"""Entry point for ``python -m metaballs``."""

import sys

from metaballs.cli import main

if __name__ == "__main__":
    sys.exit(main())
