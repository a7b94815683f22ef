"""Entry point for ``python -m commit_review``."""

import sys

from commit_review.cli import main

sys.exit(main())
