from __future__ import annotations

import os
import sys
from pathlib import Path

# headless matplotlib before anything imports pyplot
os.environ.setdefault("MPLBACKEND", "Agg")

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))
