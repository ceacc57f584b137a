"""Settings package for OpenTimeline.

- _paths.py: Path constants for the settings file and default database
- _validation.py: Field validation
- _settings.py: Main Settings dataclass
"""

from opentimeline.settings._paths import DEFAULT_DATABASE_PATH, OUTPUT_DIR, SETTINGS_FILE
from opentimeline.settings._settings import Settings

__all__ = [
    "DEFAULT_DATABASE_PATH",
    "OUTPUT_DIR",
    "SETTINGS_FILE",
    "Settings",
]
