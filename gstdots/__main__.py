from __future__ import annotations
import sys

from gstdots.cli import main

if __name__ == "__main__":
    sys.exit(main())
