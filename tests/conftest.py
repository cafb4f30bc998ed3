"""Shared test setup: point the bridge at the shipped catalog."""

import os
from pathlib import Path

CATALOG_PATH = Path(__file__).resolve().parents[1] / "config" / "catalog.yaml"

os.environ["CONFIG_PATH"] = str(CATALOG_PATH)
