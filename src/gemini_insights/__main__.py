"""Allow ``python -m gemini_insights``."""

import sys

from gemini_insights.cli import main

if __name__ == "__main__":
    sys.exit(main())
