#!/usr/bin/env python3
"""
Building POT templates from extracted messages.

The scanner that finds translatable strings in source code lives
elsewhere; it feeds what it finds into a ``TemplateBuilder``:

    builder = TemplateBuilder()
    builder.add_comment("Shown on the login page")
    builder.add_message("Welcome back, %{name}", "lib/login.py", 12)
    template = builder.build()

Extracted comments queue up on the builder and attach to the next
message added.
"""

import copy
from typing import Optional

from .interpolation import MESSAGE_FORMAT
from .messages import AUTOGEN_FLAG, AnyMessage, MessageCollection, Plural, Singular

POT_COMMENTS = [
    "## This file is a PO Template file.",
    "##",
    '## "msgid"s here are often extracted from source code.',
    "## Add new messages manually only if they're dynamic",
    "## messages that can't be statically extracted.",
    "##",
    '## Run "pokit merge" to bring this file up to',
    '## date. Leave "msgstr"s empty as changing them here has no',
    "## effect: edit them in PO (.po) files instead.",
]


class TemplateBuilder:
    """Accumulates extracted messages for one template (domain)."""

    def __init__(self):
        self._pending_comments: list[str] = []
        self._messages: dict[tuple, AnyMessage] = {}

    def add_comment(self, comment: str):
        """Queue an extracted comment for the next message."""
        comment = comment.strip()
        if comment:
            self._pending_comments.append(comment)

    def add_message(
        self,
        msgid: str,
        file: str,
        line: Optional[int],
        msgid_plural: Optional[str] = None,
        msgctxt: Optional[str] = None,
    ) -> AnyMessage:
        """
        Record a message found at ``file:line``.

        A message seen before gains the new reference and comments instead
        of being added twice.

        Returns:
            The message as currently recorded
        """
        comments, self._pending_comments = self._pending_comments, []
        reference = (file, line)
        key = (msgctxt, msgid)

        existing = self._messages.get(key)
        if existing is not None:
            if reference not in existing.references:
                existing.references.append(reference)
            for comment in comments:
                if comment not in existing.extracted_comments:
                    existing.extracted_comments.append(comment)
            return existing

        fields = dict(
            msgid=[msgid],
            msgctxt=msgctxt,
            extracted_comments=comments,
            references=[reference],
            flags={MESSAGE_FORMAT, AUTOGEN_FLAG},
        )
        if msgid_plural is None:
            message = Singular(msgstr=[""], **fields)
        else:
            message = Plural(msgid_plural=[msgid_plural], msgstr={0: [""], 1: [""]}, **fields)
        self._messages[key] = message
        return message

    def __len__(self) -> int:
        return len(self._messages)

    def build(self) -> MessageCollection:
        """Collection sorted by (msgctxt, msgid), ready for ``merge_template``."""
        messages = sorted(
            self._messages.values(),
            key=lambda m: (m.msgctxt or "", m.text),
        )
        return MessageCollection(
            messages=copy.deepcopy(messages),
            headers=[],
            top_comments=list(POT_COMMENTS),
        )
