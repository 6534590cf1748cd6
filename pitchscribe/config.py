from __future__ import annotations
from pathlib import Path


def project_root() -> Path:
    # pitchscribe/ is one level under the repo root
    return Path(__file__).resolve().parents[1]


ROOT_DIR = project_root()
DEFAULT_EXPORT_DIR = ROOT_DIR / "exports"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
