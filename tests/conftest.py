from __future__ import annotations

import sys
from pathlib import Path

# Make src/ importable without an editable install.
sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))
