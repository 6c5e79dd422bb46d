"""Configuration for duplicate detection, ancestry reports and the vault.

Every setting has a default that can be overridden from the environment
(read when the config object is created) or from a YAML file passed to
:func:`load_config`. Config objects are passed explicitly into the
services that use them; nothing reads settings from a global.

Environment Variables:
    KINVAULT_DUP_MIN_CONFIDENCE: Minimum confidence to report a pair (default 60)
    KINVAULT_DUP_MIN_NAME_SIMILARITY: Name similarity gate (default 70)
    KINVAULT_DUP_MAX_YEAR_DIFF: Year difference still scored as close (default 5)
    KINVAULT_DUP_SAME_COLLECTION: Only compare within a collection (default false)

    KINVAULT_AHNENTAFEL_GENERATIONS: Generations to number (default 5)

    KINVAULT_PEOPLE_FOLDER: Folder new person notes are created in (default People)

Example YAML::

    duplicates:
      min_confidence: 70
      same_collection_only: true
    ancestry:
      max_generations: 8
    vault:
      people_folder: Family/People
      property_aliases:
        birthdate: born
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from kinvault.errors import ConfigError

_TRUE = {"1", "true", "yes", "on"}


def _f(name: str, default: float) -> float:
    """Parse float from environment variable with fallback."""
    try:
        return float(os.getenv(name, default))
    except ValueError:
        return default


def _i(name: str, default: int) -> int:
    """Parse int from environment variable with fallback."""
    try:
        return int(os.getenv(name, default))
    except ValueError:
        return default


def _b(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE


def _s(name: str, default: str) -> str:
    return os.getenv(name) or default


@dataclass(frozen=True)
class DuplicateDetectionConfig:
    """Thresholds for pairwise duplicate scoring (all on a 0-100 scale)."""

    min_confidence: float = field(default_factory=lambda: _f("KINVAULT_DUP_MIN_CONFIDENCE", 60))
    min_name_similarity: float = field(
        default_factory=lambda: _f("KINVAULT_DUP_MIN_NAME_SIMILARITY", 70)
    )
    max_year_difference: int = field(default_factory=lambda: _i("KINVAULT_DUP_MAX_YEAR_DIFF", 5))
    same_collection_only: bool = field(
        default_factory=lambda: _b("KINVAULT_DUP_SAME_COLLECTION", False)
    )

    def __post_init__(self) -> None:
        for name in ("min_confidence", "min_name_similarity"):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ConfigError(f"duplicates.{name} must be between 0 and 100, got {value}")
        if self.max_year_difference < 1:
            raise ConfigError(
                f"duplicates.max_year_difference must be at least 1, got {self.max_year_difference}"
            )


@dataclass(frozen=True)
class AncestryConfig:
    max_generations: int = field(default_factory=lambda: _i("KINVAULT_AHNENTAFEL_GENERATIONS", 5))

    def __post_init__(self) -> None:
        if self.max_generations < 1:
            raise ConfigError(f"ancestry.max_generations must be at least 1, got {self.max_generations}")


@dataclass(frozen=True)
class VaultConfig:
    """Where person notes live and how their frontmatter keys are spelled.

    ``property_aliases`` maps a user's frontmatter key to the canonical key
    it stands for, e.g. ``{"birthdate": "born"}``.
    """

    people_folder: str = field(default_factory=lambda: _s("KINVAULT_PEOPLE_FOLDER", "People"))
    property_aliases: dict[str, str] = field(default_factory=dict)

    def alias_for(self, canonical: str) -> str | None:
        """Return the user key aliased to ``canonical``, if any."""
        for user_key, target in self.property_aliases.items():
            if target == canonical:
                return user_key
        return None


@dataclass(frozen=True)
class KinvaultConfig:
    duplicates: DuplicateDetectionConfig = field(default_factory=DuplicateDetectionConfig)
    ancestry: AncestryConfig = field(default_factory=AncestryConfig)
    vault: VaultConfig = field(default_factory=VaultConfig)


def _section(cls: type, data: Any, section: str):
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ConfigError(f"{section}: expected a mapping")
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"{section}: unknown key(s) {', '.join(sorted(unknown))}")
    try:
        return replace(cls(), **data)
    except TypeError as e:
        raise ConfigError(f"{section}: {e}") from e


def load_config(path: Path | str | None = None) -> KinvaultConfig:
    """Build a :class:`KinvaultConfig` from env defaults and an optional YAML file."""
    if path is None:
        return KinvaultConfig()

    try:
        raw = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    except OSError as e:
        raise ConfigError(f"cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    unknown = set(raw) - {"duplicates", "ancestry", "vault"}
    if unknown:
        raise ConfigError(f"{path}: unknown section(s) {', '.join(sorted(unknown))}")

    vault = raw.get("vault")
    if isinstance(vault, dict) and vault.get("property_aliases") is not None:
        aliases = vault["property_aliases"]
        if not isinstance(aliases, dict):
            raise ConfigError("vault.property_aliases: expected a mapping")
        vault = {**vault, "property_aliases": {str(k): str(v) for k, v in aliases.items()}}

    return KinvaultConfig(
        duplicates=_section(DuplicateDetectionConfig, raw.get("duplicates"), "duplicates"),
        ancestry=_section(AncestryConfig, raw.get("ancestry"), "ancestry"),
        vault=_section(VaultConfig, vault, "vault"),
    )
