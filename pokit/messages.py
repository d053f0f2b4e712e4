#!/usr/bin/env python3
"""
Message model for PO/POT files.

A PO file is a list of messages. Each message is either a ``Singular``
(one msgstr) or a ``Plural`` (one msgstr per plural slot). Both share the
fields held by ``Message``; callers tell them apart with ``isinstance``.

String values (msgid, msgid_plural, each msgstr) are kept as lists of
fragments so multi-line literals survive a parse/dump cycle:

```
msgid ""
"Hello "
"world"
```

is ``msgid=["", "Hello ", "world"]`` with logical text ``"Hello world"``.
"""

from dataclasses import dataclass, field, replace
from typing import Optional, Union

FUZZY_FLAG = "fuzzy"

# Stamped onto messages built by the template builder so that template
# merges know which entries can be purged safely.
AUTOGEN_FLAG = "pokit-autogen"

Reference = tuple[str, Optional[int]]


def _fragments(value) -> list[str]:
    if isinstance(value, str):
        return [value]
    return list(value)


@dataclass
class Message:
    """Fields shared by singular and plural messages."""
    msgid: list[str] = field(default_factory=list)
    msgctxt: Optional[str] = None
    comments: list[str] = field(default_factory=list)  # raw "# ..." lines
    extracted_comments: list[str] = field(default_factory=list)
    references: list[Reference] = field(default_factory=list)
    flags: set[str] = field(default_factory=set)
    source_line: Optional[int] = None
    obsolete: bool = False
    previous_messages: list["Message"] = field(default_factory=list)

    def __post_init__(self):
        self.msgid = _fragments(self.msgid)
        self.flags = set(self.flags)

    @property
    def text(self) -> str:
        """Logical msgid."""
        return "".join(self.msgid)

    def key(self) -> tuple[Optional[str], str]:
        """Identity of the message: (msgctxt, msgid). msgid_plural is not part of it."""
        return (self.msgctxt, self.text)

    def has_flag(self, flag: str) -> bool:
        return flag in self.flags

    def with_flag(self, flag: str) -> "Message":
        return replace(self, flags=self.flags | {flag})

    def without_flag(self, flag: str) -> "Message":
        return replace(self, flags=self.flags - {flag})

    @property
    def is_fuzzy(self) -> bool:
        return FUZZY_FLAG in self.flags


@dataclass
class Singular(Message):
    msgstr: list[str] = field(default_factory=list)

    def __post_init__(self):
        super().__post_init__()
        self.msgstr = _fragments(self.msgstr)

    @property
    def translation(self) -> str:
        return "".join(self.msgstr)

    def is_translated(self) -> bool:
        return any(self.msgstr)


@dataclass
class Plural(Message):
    msgid_plural: list[str] = field(default_factory=list)
    msgstr: dict[int, list[str]] = field(default_factory=dict)

    def __post_init__(self):
        super().__post_init__()
        self.msgid_plural = _fragments(self.msgid_plural)
        self.msgstr = {int(index): _fragments(value) for index, value in self.msgstr.items()}

    @property
    def plural_text(self) -> str:
        return "".join(self.msgid_plural)

    def translation(self, index: int) -> Optional[str]:
        """Joined msgstr for a plural slot, or None if the slot is absent."""
        if index not in self.msgstr:
            return None
        return "".join(self.msgstr[index])

    def is_translated(self) -> bool:
        return any(any(value) for value in self.msgstr.values())


AnyMessage = Union[Singular, Plural]


def empty_plural_msgstr(count: int) -> dict[int, list[str]]:
    """One empty slot per plural form."""
    return {index: [""] for index in range(count)}


def reshape_msgstr(source: AnyMessage, target: AnyMessage):
    """
    Copy the msgstr of ``source`` into the shape ``target`` expects.

    Singular from plural takes the lowest slot. Plural from singular puts
    the single string into every slot of ``target`` (at least slot 0).
    """
    if isinstance(target, Plural):
        if isinstance(source, Plural):
            return {index: list(value) for index, value in source.msgstr.items()}
        slots = sorted(target.msgstr) or [0]
        return {index: list(source.msgstr) for index in slots}

    if isinstance(source, Plural):
        if not source.msgstr:
            return [""]
        return list(source.msgstr[min(source.msgstr)])
    return list(source.msgstr)


def header_value(headers: list[str], name: str) -> Optional[str]:
    """
    Look up a header in a list of header strings.

    Header strings are joined and split on newlines, so a header split
    across fragments is still found. Names compare case-insensitively.
    """
    wanted = name.strip().lower()
    for line in "".join(headers).split("\n"):
        header, sep, value = line.partition(":")
        if sep and header.strip().lower() == wanted:
            return value.strip()
    return None


@dataclass
class MessageCollection:
    """Parsed PO/POT file: header data plus ordered messages."""
    messages: list[AnyMessage] = field(default_factory=list)
    headers: list[str] = field(default_factory=list)
    top_comments: list[str] = field(default_factory=list)
    source_path: Optional[str] = None

    def header(self, name: str) -> Optional[str]:
        return header_value(self.headers, name)

    def find(self, msgid: str, msgctxt: Optional[str] = None) -> Optional[AnyMessage]:
        """First non-obsolete message with the given key."""
        for message in self.messages:
            if not message.obsolete and message.key() == (msgctxt, msgid):
                return message
        return None

    def active_messages(self) -> list[AnyMessage]:
        return [m for m in self.messages if not m.obsolete]

    def get_stats(self) -> dict:
        """Counts used by ``pokit check``."""
        active = self.active_messages()
        return {
            "messages": len(active),
            "plural_messages": sum(1 for m in active if isinstance(m, Plural)),
            "translated": sum(1 for m in active if m.is_translated() and not m.is_fuzzy),
            "fuzzy": sum(1 for m in active if m.is_fuzzy),
            "obsolete": len(self.messages) - len(active),
        }
