#!/usr/bin/env python3
"""
Merge configuration.

A policy can be built in code, from a dict, or from a YAML file:

```yaml
merge:
  fuzzy: true
  fuzzy_threshold: 0.8
  on_obsolete: mark_as_obsolete
  custom_flags_to_keep: [no-wrap]
  excluded_refs_from_purging: "^lib/generated/"
```
"""

import re
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Optional, Union

import yaml

from .errors import ConfigError
from .po import BOM_POLICIES, REFERENCE_LINE_WIDTH

ON_OBSOLETE_CHOICES = ("delete", "mark_as_obsolete")

_BOOL_FIELDS = (
    "fuzzy",
    "store_previous_message_on_fuzzy_match",
    "write_reference_comments",
    "write_reference_line_numbers",
)


@dataclass
class MergePolicy:
    """Options for merging PO/POT files."""
    fuzzy: bool = True
    fuzzy_threshold: float = 0.8
    on_obsolete: str = "delete"  # delete, mark_as_obsolete
    store_previous_message_on_fuzzy_match: bool = False
    custom_flags_to_keep: list[str] = field(default_factory=list)
    plural_forms: Optional[int] = None  # explicit number of plural slots
    excluded_refs_from_purging: Optional[str] = None  # regex over "file" of references
    write_reference_comments: bool = True
    write_reference_line_numbers: bool = True
    reference_width: int = REFERENCE_LINE_WIDTH
    bom: str = "warn"  # warn, strip, reject

    def __post_init__(self):
        self.custom_flags_to_keep = list(self.custom_flags_to_keep)
        self.validate()

    def validate(self):
        """Raise ConfigError if any option is out of range."""
        for name in _BOOL_FIELDS:
            if not isinstance(getattr(self, name), bool):
                raise ConfigError(f"{name} must be true or false")
        if isinstance(self.fuzzy_threshold, bool) or not isinstance(self.fuzzy_threshold, (int, float)):
            raise ConfigError("fuzzy_threshold must be a number")
        if not 0 <= self.fuzzy_threshold <= 1:
            raise ConfigError(f"fuzzy_threshold must be between 0 and 1, got {self.fuzzy_threshold}")
        if self.on_obsolete not in ON_OBSOLETE_CHOICES:
            raise ConfigError(
                f"on_obsolete must be one of {', '.join(ON_OBSOLETE_CHOICES)}, got {self.on_obsolete!r}"
            )
        if self.bom not in BOM_POLICIES:
            raise ConfigError(f"bom must be one of {', '.join(BOM_POLICIES)}, got {self.bom!r}")
        if self.plural_forms is not None:
            if isinstance(self.plural_forms, bool) or not isinstance(self.plural_forms, int) or self.plural_forms < 1:
                raise ConfigError(f"plural_forms must be a positive integer, got {self.plural_forms!r}")
        if not isinstance(self.reference_width, int) or self.reference_width < 1:
            raise ConfigError(f"reference_width must be a positive integer, got {self.reference_width!r}")
        if not all(isinstance(flag, str) for flag in self.custom_flags_to_keep):
            raise ConfigError("custom_flags_to_keep must be a list of strings")
        if self.excluded_refs_from_purging is not None:
            try:
                re.compile(self.excluded_refs_from_purging)
            except re.error as e:
                raise ConfigError(f"excluded_refs_from_purging is not a valid pattern: {e}") from e

    @property
    def purge_exclusion(self) -> Optional[re.Pattern]:
        if self.excluded_refs_from_purging is None:
            return None
        return re.compile(self.excluded_refs_from_purging)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON/YAML serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict, path: Optional[str] = None) -> "MergePolicy":
        """Create from dictionary, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown option(s): {', '.join(unknown)}", path)
        try:
            return cls(**data)
        except ConfigError as e:
            e.path = path
            raise

    def with_overrides(self, **overrides) -> "MergePolicy":
        """Copy with every override that is not None applied."""
        changes = {name: value for name, value in overrides.items() if value is not None}
        return replace(self, **changes)


def load_config(path: Union[str, Path]) -> MergePolicy:
    """
    Load a MergePolicy from a YAML file.

    The options can sit at the top level or under a ``merge:`` key.

    Raises:
        ConfigError: If the file can't be read or holds invalid options
    """
    path = str(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"cannot read config: {e.strerror or e}", path) from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML: {e}", path) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("config must be a mapping", path)
    if "merge" in data:
        data = data["merge"] or {}
        if not isinstance(data, dict):
            raise ConfigError("'merge' must be a mapping", path)

    return MergePolicy.from_dict(data, path)
