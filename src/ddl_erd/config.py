"""
Inference configuration and YAML loading.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List

import yaml

logger = logging.getLogger(__name__)


class ManyToManyMode(str, Enum):
    """How a junction table is materialized as relationships."""
    SINGLE = "single"                # one record refA -> refB
    BIDIRECTIONAL = "bidirectional"  # refA -> refB and refB -> refA


@dataclass(frozen=True)
class NameVariant:
    """
    Rule turning a ``<stem>_id`` stem into a candidate table name.

    ``strip`` is removed from the end of the stem (the rule only applies when
    the stem ends with it), then ``append`` is added.
    """
    strip: str = ""
    append: str = ""

    def apply(self, stem: str) -> str:
        if self.strip:
            if not stem.endswith(self.strip) or len(stem) == len(self.strip):
                return ""
            stem = stem[: -len(self.strip)]
        return stem + self.append

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> NameVariant:
        return cls(strip=str(data.get("strip", "")), append=str(data.get("append", "")))


# English plus the Portuguese/Spanish feminine forms (categoria_id -> categorias)
DEFAULT_NAME_VARIANTS = [
    NameVariant(),
    NameVariant(append="s"),
    NameVariant(append="es"),
    NameVariant(strip="s"),
    NameVariant(append="a"),
    NameVariant(append="as"),
]

DEFAULT_AUDIT_COLUMNS = ["created_at", "updated_at", "deleted_at"]
DEFAULT_AUDIT_SUBSTRINGS = ["timestamp", "date_"]


@dataclass
class InferenceConfig:
    """Options for relationship inference."""
    many_to_many_mode: ManyToManyMode = ManyToManyMode.SINGLE

    # Convention pass
    enable_convention_pass: bool = True
    convention_target_column: str = "id"
    name_variants: List[NameVariant] = field(default_factory=lambda: list(DEFAULT_NAME_VARIANTS))
    extra_name_variants: List[NameVariant] = field(default_factory=list)

    # Junction detection
    audit_columns: List[str] = field(default_factory=lambda: list(DEFAULT_AUDIT_COLUMNS))
    audit_column_substrings: List[str] = field(default_factory=lambda: list(DEFAULT_AUDIT_SUBSTRINGS))
    max_junction_extra_columns: int = 2

    def __post_init__(self):
        if isinstance(self.many_to_many_mode, str):
            self.many_to_many_mode = ManyToManyMode(self.many_to_many_mode.lower())

    @property
    def all_name_variants(self) -> List[NameVariant]:
        return list(self.name_variants) + list(self.extra_name_variants)

    def candidate_tables(self, stem: str) -> List[str]:
        """Candidate table names for a column stem, in rule order, without repeats."""
        candidates: List[str] = []
        for variant in self.all_name_variants:
            name = variant.apply(stem.lower())
            if name and name not in candidates:
                candidates.append(name)
        return candidates

    def is_audit_column(self, column_name: str) -> bool:
        name = column_name.lower()
        if name in self.audit_columns:
            return True
        return any(sub in name for sub in self.audit_column_substrings)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> InferenceConfig:
        """Create from a (possibly partial) configuration mapping."""
        config = cls()

        if "many_to_many_mode" in data:
            config.many_to_many_mode = ManyToManyMode(str(data["many_to_many_mode"]).lower())

        convention = data.get("convention") or {}
        if "enabled" in convention:
            config.enable_convention_pass = bool(convention["enabled"])
        if "target_column" in convention:
            config.convention_target_column = str(convention["target_column"]).lower()
        if "name_variants" in convention:
            config.name_variants = [NameVariant.from_dict(v) for v in convention["name_variants"]]
        if "extra_name_variants" in convention:
            config.extra_name_variants = [NameVariant.from_dict(v) for v in convention["extra_name_variants"]]

        junction = data.get("junction") or {}
        if "audit_columns" in junction:
            config.audit_columns = [str(c).lower() for c in junction["audit_columns"]]
        if "audit_column_substrings" in junction:
            config.audit_column_substrings = [str(c).lower() for c in junction["audit_column_substrings"]]
        if "max_extra_columns" in junction:
            config.max_junction_extra_columns = int(junction["max_extra_columns"])

        return config


def load_config(path: Path) -> InferenceConfig:
    """
    Load inference configuration from a YAML file.

    Missing keys keep their defaults.

    Raises:
        FileNotFoundError: if the file does not exist
        ValueError: if the file is not a YAML mapping or holds invalid values
    """
    path = Path(path)
    with open(path, "r") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Configuration in {path} must be a mapping")

    config = InferenceConfig.from_dict(data)
    logger.info(f"Loaded inference config from {path}")
    return config
