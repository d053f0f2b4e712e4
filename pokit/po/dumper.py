#!/usr/bin/env python3
"""
Serialize a MessageCollection back to PO text.

Output is canonical rather than a copy of the input layout: comments are
re-emitted in a fixed order, references are re-wrapped and flags are
sorted. Anything produced here parses back to an identical dump.
"""

from typing import Iterator

from ..messages import AnyMessage, MessageCollection, Plural, Reference

# Soft limit for "#:" lines; a single long reference may still exceed it.
REFERENCE_LINE_WIDTH = 80

OBSOLETE_PREFIX = "#~ "
PREVIOUS_PREFIX = "#| "


def escape(value: str) -> str:
    """Escape a string for use inside a PO literal."""
    return (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\t", "\\t")
        .replace("\r", "\\r")
    )


def _keyword_lines(keyword: str, fragments: list[str], prefix: str = "") -> list[str]:
    """First fragment on the keyword line, one quoted line per further fragment."""
    fragments = fragments or [""]
    lines = [f'{prefix}{keyword} "{escape(fragments[0])}"']
    lines.extend(f'{prefix}"{escape(fragment)}"' for fragment in fragments[1:])
    return lines


def format_reference(reference: Reference) -> str:
    file, line = reference
    if line is None:
        return file
    return f"{file}:{line}"


def reference_lines(references: list[Reference], width: int = REFERENCE_LINE_WIDTH) -> list[str]:
    """Pack "file:line" items greedily into "#:" lines of at most ``width`` columns."""
    lines = []
    current = "#:"
    for reference in references:
        item = format_reference(reference)
        if current != "#:" and len(current) + 1 + len(item) > width:
            lines.append(current)
            current = "#:"
        current += " " + item
    if current != "#:":
        lines.append(current)
    return lines


def _string_lines(message: AnyMessage, prefix: str, include_msgstr: bool = True) -> list[str]:
    lines = []
    if message.msgctxt is not None:
        lines.extend(_keyword_lines("msgctxt", [message.msgctxt], prefix))
    lines.extend(_keyword_lines("msgid", message.msgid, prefix))

    if isinstance(message, Plural):
        lines.extend(_keyword_lines("msgid_plural", message.msgid_plural, prefix))
        if include_msgstr:
            msgstr = message.msgstr or {0: [""]}
            for index in sorted(msgstr):
                lines.extend(_keyword_lines(f"msgstr[{index}]", msgstr[index], prefix))
    elif include_msgstr:
        lines.extend(_keyword_lines("msgstr", message.msgstr, prefix))
    return lines


def message_lines(message: AnyMessage, reference_width: int = REFERENCE_LINE_WIDTH) -> list[str]:
    """All lines of one message, without the trailing newline."""
    lines = [f"#. {comment}" for comment in message.extracted_comments]
    if message.flags:
        lines.append("#, " + ", ".join(sorted(message.flags)))
    lines.extend(reference_lines(message.references, reference_width))
    lines.extend(message.comments)
    for previous in message.previous_messages:
        lines.extend(_string_lines(previous, PREVIOUS_PREFIX, include_msgstr=False))

    prefix = OBSOLETE_PREFIX if message.obsolete else ""
    lines.extend(_string_lines(message, prefix))
    return lines


def header_lines(collection: MessageCollection) -> list[str]:
    lines = list(collection.top_comments)
    lines.append('msgid ""')
    lines.append('msgstr ""')
    lines.extend(f'"{escape(header)}"' for header in collection.headers)
    return lines


def iter_dump(collection: MessageCollection, reference_width: int = REFERENCE_LINE_WIDTH) -> Iterator[str]:
    """
    Yield the PO text of a collection in chunks, one entry at a time.

    A blank line separates entries. The header entry is written when the
    collection has headers or top comments, and also when the first message
    has an empty msgid and no context, which would otherwise be read back
    as the header.
    """
    first = True
    messages = collection.messages
    if collection.headers or collection.top_comments or (messages and messages[0].key() == (None, "")):
        yield "\n".join(header_lines(collection)) + "\n"
        first = False

    for message in collection.messages:
        if not first:
            yield "\n"
        first = False
        yield "\n".join(message_lines(message, reference_width)) + "\n"


def dump(collection: MessageCollection, reference_width: int = REFERENCE_LINE_WIDTH) -> str:
    """Render a collection as PO text."""
    return "".join(iter_dump(collection, reference_width))
