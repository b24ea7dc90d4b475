"""Allow ``python -m pysysmon``."""

import sys

from pysysmon.app import main

sys.exit(main())
