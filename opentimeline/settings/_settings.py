"""The Settings dataclass and its JSON persistence.

Settings live in settings.json at the project root. Unknown keys in the file
are dropped and missing keys get their defaults, so older files keep loading
after fields are added or removed.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, ClassVar

from opentimeline.memory.automatic_tags import AutomaticTags
from opentimeline.settings import _validation as _validation_mod
from opentimeline.settings._paths import DEFAULT_DATABASE_PATH, SETTINGS_FILE
from opentimeline.utils.exceptions import ConfigError

logger = logging.getLogger(__name__)


def _merge_with_defaults(data: dict[str, Any], settings_cls: type[Settings]) -> bool:
    """Bring a loaded dict in line with the current fields, in place.

    Returns:
        True if a key was added or removed.
    """
    defaults = asdict(settings_cls())
    obsolete = [key for key in data if key not in defaults]
    missing = [key for key in defaults if key not in data]

    for key in obsolete:
        logger.info("Dropping unknown setting: %s", key)
        del data[key]
    for key in missing:
        logger.info("Filling in missing setting %s with its default", key)
        data[key] = defaults[key]

    return bool(obsolete or missing)


def _atomic_write_json(path: Path | str, data: dict[str, Any]) -> None:
    """Write ``data`` as JSON so readers never see a half-written file."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=str(target.parent), prefix=".settings-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_name, target)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError as cleanup_err:
            logger.warning("Could not remove temp file %s: %s", tmp_name, cleanup_err)
        raise


def _read_settings_file() -> dict[str, Any] | None:
    """Return the JSON object stored in SETTINGS_FILE.

    A missing file returns None silently. An unreadable or corrupt file is
    logged and also returns None, so the caller falls back to defaults.
    """
    if not SETTINGS_FILE.exists():
        return None
    try:
        raw = json.loads(SETTINGS_FILE.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        logger.error("Ignoring corrupt settings file %s: %s", SETTINGS_FILE, e)
        return None
    except OSError as e:
        logger.error("Cannot read settings file %s: %s", SETTINGS_FILE, e)
        return None
    if not isinstance(raw, dict):
        logger.error(
            "Ignoring settings file %s: expected a JSON object, found %s",
            SETTINGS_FILE,
            type(raw).__name__,
        )
        return None
    return raw


@dataclass
class Settings:
    """Engine and CLI settings."""

    log_level: str = "INFO"
    database_path: str = str(DEFAULT_DATABASE_PATH)

    # Thread pool size for per-timeline composition (1 = serial)
    composition_workers: int = 1

    # Raise NotFoundError for dangling links/edges instead of skipping them
    strict_references: bool = False

    # Tag implication rules: [{"when": {"name": ..., "value": ...}, "add": {...}}]
    automatic_tags: list[dict[str, Any]] = field(default_factory=list)

    _cached_instance: ClassVar[Settings | None] = None

    def save(self) -> None:
        """Validate, then write to SETTINGS_FILE.

        Raises:
            ValueError: If a field is invalid. Nothing is written in that case.
        """
        self.validate()
        _atomic_write_json(SETTINGS_FILE, asdict(self))
        logger.info("Saved settings to %s", SETTINGS_FILE)

    def validate(self) -> bool:
        """Check every field, normalizing where possible.

        Returns:
            True if a value was normalized (for example log level case).

        Raises:
            ValueError: If a field holds an invalid value.
        """
        return _validation_mod.validate(self)

    def get_automatic_tags(self) -> AutomaticTags:
        """Build the tag implication rules from ``automatic_tags``."""
        return AutomaticTags.from_config(self.automatic_tags)

    @classmethod
    def load(cls, use_cache: bool = True) -> Settings:
        """Load settings from SETTINGS_FILE, falling back to defaults.

        When merging or normalizing changed a value read from the file, the
        file is rewritten so it matches what is in use.

        Args:
            use_cache: Return the instance from an earlier load if there is one.

        Returns:
            The settings.

        Raises:
            ConfigError: If the file holds a value of the wrong type or range.
        """
        if use_cache and cls._cached_instance is not None:
            return cls._cached_instance

        stored = _read_settings_file()
        data = stored if stored is not None else {}
        changed = _merge_with_defaults(data, cls)

        try:
            settings = cls(**data)
            changed = settings.validate() or changed
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid settings in {SETTINGS_FILE}: {e}") from e

        if changed and stored is not None:
            logger.info("Rewriting %s with merged settings", SETTINGS_FILE)
            try:
                _atomic_write_json(SETTINGS_FILE, asdict(settings))
            except OSError as write_err:
                logger.warning("Could not rewrite settings file: %s", write_err)

        logger.debug("Settings loaded (from_file=%s)", stored is not None)
        cls._cached_instance = settings
        return settings

    @classmethod
    def clear_cache(cls) -> None:
        """Forget the cached instance so the next load() reads the file again."""
        cls._cached_instance = None
