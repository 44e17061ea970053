# Test configuration utilities.
# Ensures the repository root is on sys.path so that 'pdfpages' can be imported
# when running pytest without installing the package.
from __future__ import annotations

import os
from pathlib import Path
import sys


# Keep test runs from writing debug_logs.log into the working directory.
os.environ.setdefault("PDFPAGES_LOG_FILE", "")

ROOT = Path(__file__).parent.resolve()
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
