"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from doc_index.index.discovery import normalize_extensions
from doc_index.index.models import RankingModel

DEFAULT_NUMBER_RESULTS = 10
DEFAULT_FILE_TYPES = (".txt",)
FILE_TYPES_DELIMITER = ";"


class SettingsError(ValueError):
    """Raised when a settings file is unreadable or has invalid values."""


@dataclass(slots=True, frozen=True)
class Settings:
    """Result count and accepted extensions."""

    number_results: int
    file_types: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class RunConfig:
    """Fully merged configuration for one indexing-and-search invocation."""

    document_dir: Path
    index_dir: Path
    ranking_model: RankingModel
    query: str
    settings: Settings
    verbose: bool = False
    settings_path: Path | None = None

    def to_public_dict(self) -> dict[str, object]:
        """Return serializable config snapshot."""
        return {
            "document_dir": str(self.document_dir),
            "index_dir": str(self.index_dir),
            "ranking_model": self.ranking_model.label,
            "query": self.query,
            "number_results": self.settings.number_results,
            "file_types": list(self.settings.file_types),
            "verbose": self.verbose,
            "settings_path": str(self.settings_path) if self.settings_path else None,
        }


def default_settings() -> Settings:
    """Build built-in settings."""
    return Settings(
        number_results=DEFAULT_NUMBER_RESULTS,
        file_types=normalize_extensions(DEFAULT_FILE_TYPES),
    )


def load_settings_file(path: Path) -> dict[str, object]:
    """Load a TOML settings file, raising SettingsError when unusable."""
    try:
        with path.open("rb") as handle:
            payload = tomllib.load(handle)
    except OSError as error:
        raise SettingsError(f"Cannot read settings file {path}: {error}") from error
    except tomllib.TOMLDecodeError as error:
        raise SettingsError(f"Invalid settings file {path}: {error}") from error
    return payload


def _settings_table(payload: dict[str, object]) -> dict[str, object]:
    value = payload.get("settings")
    if value is None:
        return payload
    if not isinstance(value, dict):
        raise SettingsError("Config section 'settings' must be a table.")
    return value


def parse_file_types(value: object) -> tuple[str, ...]:
    """Parse ``"html;htm"`` or ``["html", "htm"]`` into normalized extensions."""
    if isinstance(value, str):
        return normalize_extensions(value.split(FILE_TYPES_DELIMITER))
    if not isinstance(value, list):
        raise SettingsError(
            "Config field 'settings.file_types' must be a string or a list of strings."
        )
    output: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise SettingsError("Config field 'settings.file_types' must contain only strings.")
        output.extend(item.split(FILE_TYPES_DELIMITER))
    return normalize_extensions(output)


def merge_settings(base: Settings, payload: dict[str, object]) -> Settings:
    """Merge a settings payload over base settings.

    ``number_results`` replaces the base value, ``file_types`` is unioned
    with the base extensions.
    """
    table = _settings_table(payload)
    number_results = _optional_positive_int(
        table.get("number_results"), "settings.number_results", base.number_results
    )
    file_types = base.file_types
    if "file_types" in table:
        extra = parse_file_types(table["file_types"])
        file_types = normalize_extensions((*base.file_types, *extra))
    return Settings(number_results=number_results, file_types=file_types)


def load_effective_config(
    document_dir: Path,
    index_dir: Path,
    ranking_model: RankingModel,
    query: str,
    settings_path: Path | None = None,
    verbose: bool = False,
) -> RunConfig:
    """Load effective config using merge order defaults -> settings file."""
    settings = default_settings()
    if settings_path is not None:
        settings = merge_settings(settings, load_settings_file(settings_path))
    return RunConfig(
        document_dir=document_dir,
        index_dir=index_dir,
        ranking_model=ranking_model,
        query=query,
        settings=settings,
        verbose=verbose,
        settings_path=settings_path,
    )


def _optional_positive_int(value: object, name: str, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise SettingsError(f"Config field '{name}' must be a positive integer.")
    return value
