"""
Sync configuration.

Configuration is an immutable value loaded once from TOML and passed into
each component's constructor. Nothing reads settings from global state.

Layout of a config file (every table and key is optional):

    [sync]
    days_back = 7
    timezone = "Europe/Berlin"

    [notes]
    save_as_individual_files = true
    base_folder_type = "custom"
    custom_base_folder = "Meetings"
    filename_pattern = "{date} {title}"

    [transcripts]
    enabled = true
    handling = "custom-location"

    [daily_notes]
    folder = "Journal"
    format = "%Y/%m/%Y-%m-%d"
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import timezone, tzinfo
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import ConfigError, PatternValidationError
from .markdown.parser import MAX_HEADING_LEVEL, heading_level
from .paths.patterns import DATE_VARIABLES, SUBFOLDER_MODES, validate_pattern

BASE_FOLDER_TYPES = ("custom", "daily-notes", "source-hierarchy")
TRANSCRIPT_HANDLING = ("combined", "same-location", "custom-location")

CONFIG_FILENAME = "vaultsync.toml"


@dataclass(frozen=True)
class NoteSettings:
    enabled: bool = True
    include_private_notes: bool = False
    save_as_individual_files: bool = False  # False = sections in daily notes

    # Individual files only
    base_folder_type: str = "custom"
    custom_base_folder: str = "Meetings"
    subfolder_pattern: str = "none"
    custom_subfolder_pattern: str = ""
    filename_pattern: str = "{title}"
    link_from_daily_notes: bool = False
    daily_note_link_heading: str = "# Meetings"

    # Daily note sections only
    daily_note_section_heading: str = "# Meeting Notes"


@dataclass(frozen=True)
class TranscriptSettings:
    enabled: bool = False
    handling: str = "custom-location"
    custom_base_folder: str = "Meetings/Transcripts"
    subfolder_pattern: str = "none"
    custom_subfolder_pattern: str = ""
    filename_pattern: str = "{title}-transcript"
    link_from_note: bool = True


@dataclass(frozen=True)
class DailyNoteSettings:
    """Where the externally owned daily notes live."""

    folder: str = ""
    format: str = "%Y-%m-%d"  # strftime; may contain "/" for nested folders


@dataclass(frozen=True)
class SyncConfig:
    notes: NoteSettings = field(default_factory=NoteSettings)
    transcripts: TranscriptSettings = field(default_factory=TranscriptSettings)
    daily_notes: DailyNoteSettings = field(default_factory=DailyNoteSettings)
    days_back: int = 7  # 0 = no date filtering
    timezone: str | None = None  # None = system local time

    @property
    def tz(self) -> tzinfo | None:
        return resolve_timezone(self.timezone)

    @property
    def combined_transcripts(self) -> bool:
        """Transcripts live inside the note file instead of their own file."""
        return (
            self.transcripts.enabled
            and self.transcripts.handling == "combined"
            and self.notes.enabled
            and self.notes.save_as_individual_files
        )


def resolve_timezone(name: str | None) -> tzinfo | None:
    if not name:
        return None
    if name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f"sync.timezone: unknown timezone '{name}'") from e


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _build_section(cls: type, raw: dict[str, Any], section: str):
    known = {f.name: f for f in fields(cls)}
    kwargs: dict[str, Any] = {}
    for key, value in raw.items():
        if key not in known:
            raise ConfigError(f"{section}.{key}: unknown setting")
        default = known[key].default
        if isinstance(default, bool) and not isinstance(value, bool):
            raise ConfigError(f"{section}.{key}: expected true/false, got {value!r}")
        if isinstance(default, str) and not isinstance(value, str):
            raise ConfigError(f"{section}.{key}: expected a string, got {value!r}")
        kwargs[key] = value
    return cls(**kwargs)


def _check_choice(value: str, choices: tuple[str, ...], key: str) -> None:
    if value not in choices:
        raise ConfigError(f"{key}: '{value}' is not one of {', '.join(choices)}")


def _check_pattern(value: str, key: str, allowed: tuple[str, ...] | None = None) -> None:
    try:
        if allowed is None:
            validate_pattern(value)
        else:
            validate_pattern(value, allowed)
    except PatternValidationError as e:
        raise ConfigError(f"{key}: {e}") from e


def validate_config(config: SyncConfig) -> SyncConfig:
    """Check enum values and patterns; returns `config` unchanged."""
    notes, transcripts = config.notes, config.transcripts
    _check_choice(notes.base_folder_type, BASE_FOLDER_TYPES, "notes.base_folder_type")
    _check_choice(notes.subfolder_pattern, SUBFOLDER_MODES, "notes.subfolder_pattern")
    _check_choice(transcripts.handling, TRANSCRIPT_HANDLING, "transcripts.handling")
    _check_choice(transcripts.subfolder_pattern, SUBFOLDER_MODES, "transcripts.subfolder_pattern")

    _check_pattern(notes.filename_pattern, "notes.filename_pattern")
    _check_pattern(transcripts.filename_pattern, "transcripts.filename_pattern")
    _check_pattern(notes.custom_subfolder_pattern, "notes.custom_subfolder_pattern", DATE_VARIABLES)
    _check_pattern(
        transcripts.custom_subfolder_pattern, "transcripts.custom_subfolder_pattern", DATE_VARIABLES
    )

    for key in ("daily_note_section_heading", "daily_note_link_heading"):
        if heading_level(getattr(notes, key)) is None:
            raise ConfigError(f"notes.{key}: '{getattr(notes, key)}' is not a markdown heading")
    # Each note gets a sub-heading one level below the section heading.
    if heading_level(notes.daily_note_section_heading) >= MAX_HEADING_LEVEL:
        raise ConfigError(
            f"notes.daily_note_section_heading: level {MAX_HEADING_LEVEL} leaves no room for note sub-headings"
        )

    if config.days_back < 0:
        raise ConfigError("sync.days_back must be >= 0")
    resolve_timezone(config.timezone)
    return config


def config_from_dict(data: dict[str, Any]) -> SyncConfig:
    """Build a validated SyncConfig from parsed TOML (or an equivalent dict)."""
    if "sync_destination" in data:
        data = migrate_legacy_settings(data)

    sync = _coerce_dict(data.get("sync"))
    days_back = sync.get("days_back", 7)
    if not isinstance(days_back, int) or isinstance(days_back, bool):
        raise ConfigError(f"sync.days_back: expected an integer, got {days_back!r}")
    tz_name = sync.get("timezone")
    if tz_name is not None and not isinstance(tz_name, str):
        raise ConfigError(f"sync.timezone: expected a string, got {tz_name!r}")

    config = SyncConfig(
        notes=_build_section(NoteSettings, _coerce_dict(data.get("notes")), "notes"),
        transcripts=_build_section(
            TranscriptSettings, _coerce_dict(data.get("transcripts")), "transcripts"
        ),
        daily_notes=_build_section(
            DailyNoteSettings, _coerce_dict(data.get("daily_notes")), "daily_notes"
        ),
        days_back=days_back,
        timezone=tz_name,
    )
    return validate_config(config)


def load_config(path: Path | None) -> SyncConfig:
    """Load config from a TOML file; defaults when `path` is None or missing."""
    import tomllib

    if path is None or not path.exists():
        return SyncConfig()
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{path}: {e}") from e
    return config_from_dict(data)


def migrate_legacy_settings(old: dict[str, Any]) -> dict[str, Any]:
    """Convert the legacy flat settings shape into sectioned settings.

    Legacy shape: `sync_destination` (granola_folder | daily_notes |
    daily_note_folder_structure), `transcript_destination`
    (granola_transcripts_folder | daily_note_folder_structure |
    combined_with_note), `granola_folder`, `granola_transcripts_folder`,
    `daily_note_section_heading`. The old values are kept under `_legacy`
    and ignored on load.
    """
    new = {k: v for k, v in old.items() if k not in _LEGACY_KEYS}
    notes = dict(_coerce_dict(new.get("notes")))
    transcripts = dict(_coerce_dict(new.get("transcripts")))

    destination = old.get("sync_destination")
    if destination == "daily_notes":
        notes["save_as_individual_files"] = False
        if old.get("daily_note_section_heading"):
            notes["daily_note_section_heading"] = old["daily_note_section_heading"]
    else:
        notes["save_as_individual_files"] = True
        notes["filename_pattern"] = "{title}"
        notes["base_folder_type"] = "custom"
        notes["custom_base_folder"] = old.get("granola_folder") or NoteSettings.custom_base_folder
        notes["subfolder_pattern"] = "day" if destination == "daily_note_folder_structure" else "none"

    transcript_destination = old.get("transcript_destination")
    if transcript_destination == "combined_with_note":
        transcripts["handling"] = "combined"
    elif transcript_destination == "daily_note_folder_structure":
        transcripts["handling"] = "same-location"
    else:
        transcripts["handling"] = "custom-location"
        transcripts["custom_base_folder"] = (
            old.get("granola_transcripts_folder") or TranscriptSettings.custom_base_folder
        )
        transcripts["subfolder_pattern"] = "none"
        transcripts["filename_pattern"] = "{title}-transcript"

    new["notes"] = notes
    new["transcripts"] = transcripts
    new["_legacy"] = {k: old[k] for k in _LEGACY_KEYS if k in old}
    return new


_LEGACY_KEYS = (
    "sync_destination",
    "transcript_destination",
    "granola_folder",
    "granola_transcripts_folder",
    "daily_note_section_heading",
)
