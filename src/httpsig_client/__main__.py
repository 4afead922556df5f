"""Allow running as ``python -m httpsig_client``."""

import sys

from .cli import main

sys.exit(main())
