"""Where OpenTimeline keeps its settings file and default database."""

from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

SETTINGS_FILE = PROJECT_ROOT / "settings.json"
OUTPUT_DIR = PROJECT_ROOT / "output"
DEFAULT_DATABASE_PATH = OUTPUT_DIR / "opentimeline.db"

__all__ = [
    "DEFAULT_DATABASE_PATH",
    "OUTPUT_DIR",
    "PROJECT_ROOT",
    "SETTINGS_FILE",
]
