"""Entry point for ``python -m highlight_review``."""

import sys

from highlight_review.cli import main

if __name__ == "__main__":
    sys.exit(main())
