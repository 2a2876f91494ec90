"""Allow ``python -m greplog``."""

import sys

from .cli import main

sys.exit(main())
