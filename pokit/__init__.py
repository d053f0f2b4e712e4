"""
pokit - gettext PO/POT toolkit

Parses and writes PO/POT files, merges translations with updated
templates (exact and fuzzy matching), resolves plural forms per locale
and interpolates %{name} placeholders.

Quick start:
    from pokit import po, merger
    old = po.parse_file_or_raise("it/LC_MESSAGES/default.po")
    pot = po.parse_file_or_raise("default.pot")
    merged, stats = merger.merge(old, pot, "it")
    text = po.dump(merged)
"""

__version__ = "1.0.0"

from .catalog import Catalog
from .config import MergePolicy, load_config
from .errors import (
    DuplicateMessageError,
    FileError,
    MissingPluralFormError,
    NonEmptyMsgstrError,
    PokitError,
    PoSyntaxError,
    UnknownLocaleError,
)
from .extraction import TemplateBuilder
from .interpolation import interpolatable, interpolate
from .merger import MergeStats, merge, merge_template, new_from_template, prune_references
from .messages import MessageCollection, Plural, Singular
from .plural import plural_count, plural_index
from .po import dump, parse, parse_file, parse_file_or_raise, parse_or_raise

__all__ = [
    "Catalog",
    "DuplicateMessageError",
    "FileError",
    "MergePolicy",
    "MergeStats",
    "MessageCollection",
    "MissingPluralFormError",
    "NonEmptyMsgstrError",
    "Plural",
    "PoSyntaxError",
    "PokitError",
    "Singular",
    "TemplateBuilder",
    "UnknownLocaleError",
    "dump",
    "interpolatable",
    "interpolate",
    "load_config",
    "merge",
    "merge_template",
    "new_from_template",
    "parse",
    "parse_file",
    "parse_file_or_raise",
    "parse_or_raise",
    "plural_count",
    "plural_index",
    "prune_references",
]
