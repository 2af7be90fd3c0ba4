"""Entry point for ``python -m minority_window``."""

import sys

from minority_window.cli import main

sys.exit(main())
