"""Allow `python -m housetree`."""

import sys

from housetree.cli import main

sys.exit(main())
