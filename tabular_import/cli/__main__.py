from __future__ import annotations

import sys

from tabular_import.cli.main import main

if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
