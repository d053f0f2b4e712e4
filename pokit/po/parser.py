#!/usr/bin/env python3
"""
Parser turning tokenizer output into messages.

Grammar of one message (comments before it attach to it):

    [msgctxt STR+] msgid STR+ ( msgid_plural STR+ (msgstr[N] STR+)+
                              | msgstr STR+ )

Comment lines are categorized by prefix:

    #:  references  ("file:line" items)
    #.  extracted comments
    #,  flags
    #|  previous msgctxt/msgid/msgid_plural of a fuzzy match
    #   anything else is a translator comment, kept verbatim
"""

import logging
import re
from typing import Optional

from ..errors import DuplicateMessageError, PoSyntaxError
from ..messages import AnyMessage, Plural, Reference, Singular
from .tokenizer import COMMENT, KEYWORD, PLURAL_INDEX, STR, Token, tokenize

logger = logging.getLogger(__name__)

FLAG_SEPARATOR = re.compile(r"[,\s]+")


def parse_references(body: str) -> list[Reference]:
    """
    Parse the body of a ``#:`` comment.

    Each whitespace-separated item is read left to right over its
    ":"-separated parts. An all-digit part ends a reference and is its line
    number; the parts before it form the file name, which may itself
    contain ":". Trailing parts without a number give a reference with no
    line.

    >>> parse_references("lib/a.ex:1 C:dir/b.ex:20 c.ex")
    [('lib/a.ex', 1), ('C:dir/b.ex', 20), ('c.ex', None)]
    """
    references = []
    for item in body.split():
        file_parts: list[str] = []
        for part in item.split(":"):
            if file_parts and part.isascii() and part.isdigit():
                references.append((":".join(file_parts), int(part)))
                file_parts = []
            else:
                file_parts.append(part)
        if file_parts and any(file_parts):
            references.append((":".join(file_parts), None))
    return references


def parse_flags(body: str) -> set[str]:
    return {flag for flag in FLAG_SEPARATOR.split(body) if flag}


class Parser:
    """Recursive-descent parser over a token list."""

    def __init__(self, tokens: list[Token]):
        self.tokens = tokens
        self.pos = 0

    def _peek(self) -> Optional[Token]:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def _error_before(self, token: Optional[Token]) -> PoSyntaxError:
        if token is None:
            last_line = self.tokens[-1].line if self.tokens else 1
            return PoSyntaxError(last_line, "syntax error before: end of input")
        return PoSyntaxError(token.line, f"syntax error before: {token.describe()}")

    def _is_keyword(self, token: Optional[Token], keyword: str) -> bool:
        return token is not None and token.kind == KEYWORD and token.value == keyword

    def _expect_keyword(self, keyword: str) -> Token:
        token = self._peek()
        if not self._is_keyword(token, keyword):
            raise self._error_before(token)
        self.pos += 1
        return token

    def _strings(self) -> list[str]:
        fragments = []
        while True:
            token = self._peek()
            if token is None or token.kind != STR:
                break
            fragments.append(token.value)
            self.pos += 1
        if not fragments:
            raise self._error_before(self._peek())
        return fragments

    def parse(self) -> tuple[list[tuple[list[Token], AnyMessage]], list[Token]]:
        """
        Parse all messages.

        Returns:
            ([(comment_tokens, message), ...], trailing_comment_tokens)
        """
        entries = []
        pending: list[Token] = []
        while self.pos < len(self.tokens):
            token = self.tokens[self.pos]
            if token.kind == COMMENT:
                pending.append(token)
                self.pos += 1
            elif self._is_keyword(token, "msgctxt") or self._is_keyword(token, "msgid"):
                entries.append((pending, self._message(pending)))
                pending = []
            else:
                raise self._error_before(token)
        return entries, pending

    def _message(self, comments: list[Token]) -> AnyMessage:
        first = self._peek()
        msgctxt = None
        if self._is_keyword(first, "msgctxt"):
            self.pos += 1
            msgctxt = "".join(self._strings())

        self._expect_keyword("msgid")
        msgid = self._strings()
        fields = categorize_comments(comments)
        fields.update(
            msgid=msgid,
            msgctxt=msgctxt,
            source_line=first.line,
            obsolete=first.obsolete,
        )

        if self._is_keyword(self._peek(), "msgid_plural"):
            self.pos += 1
            msgid_plural = self._strings()
            msgstr = {}
            token = self._peek()
            if token is None or token.kind != PLURAL_INDEX:
                raise self._error_before(token)
            while token is not None and token.kind == PLURAL_INDEX:
                self.pos += 1
                msgstr[token.value] = self._strings()
                token = self._peek()
            return Plural(msgid_plural=msgid_plural, msgstr=msgstr, **fields)

        self._expect_keyword("msgstr")
        return Singular(msgstr=self._strings(), **fields)


def _previous_messages(lines: list[str]) -> Optional[list[AnyMessage]]:
    """Rebuild the message recorded in ``#|`` lines, or None if they don't parse."""
    tokens, error = tokenize("\n".join(lines))
    if error is not None or not tokens:
        return None

    values: dict[str, list[str]] = {}
    current = None
    for token in tokens:
        if token.kind == KEYWORD and token.value in ("msgctxt", "msgid", "msgid_plural"):
            current = token.value
            values.setdefault(current, [])
        elif token.kind == STR and current is not None:
            values[current].append(token.value)
        else:
            return None

    if "msgid" not in values:
        return None
    msgctxt = "".join(values["msgctxt"]) if "msgctxt" in values else None
    if "msgid_plural" in values:
        return [Plural(msgid=values["msgid"], msgctxt=msgctxt, msgid_plural=values["msgid_plural"])]
    return [Singular(msgid=values["msgid"], msgctxt=msgctxt)]


def categorize_comments(tokens: list[Token]) -> dict:
    """Split comment tokens into message fields."""
    comments = []
    extracted = []
    references = []
    flags = set()
    previous = []

    for token in tokens:
        text = token.value
        if text.startswith("#:"):
            references.extend(parse_references(text[2:]))
        elif text.startswith("#."):
            body = text[2:].strip()
            if body:
                extracted.append(body)
        elif text.startswith("#,"):
            flags |= parse_flags(text[2:])
        elif text.startswith("#|"):
            previous.append(text[2:])
        else:
            comments.append(text)

    previous_messages = []
    if previous:
        previous_messages = _previous_messages(previous)
        if previous_messages is None:
            # not a previous-message record, keep the lines as written
            comments.extend("#|" + line for line in previous)
            previous_messages = []

    return {
        "comments": comments,
        "extracted_comments": extracted,
        "references": references,
        "flags": flags,
        "previous_messages": previous_messages,
    }


def find_duplicate(messages: list[AnyMessage]) -> Optional[DuplicateMessageError]:
    """First non-obsolete message whose key was already seen."""
    seen: dict[tuple, int] = {}
    for message in messages:
        if message.obsolete:
            continue
        key = message.key()
        if key in seen:
            msgid_plural = message.plural_text if isinstance(message, Plural) else None
            return DuplicateMessageError(
                line=message.source_line,
                earlier_line=seen[key],
                msgid=message.text,
                msgid_plural=msgid_plural,
            )
        seen[key] = message.source_line
    return None


def parse_tokens(tokens: list[Token]):
    """
    Build (top_comments, headers, messages) from tokens.

    Args:
        tokens: Output of ``tokenize``

    Returns:
        ((top_comments, headers, messages), None) on success, or
        (None, error) where error is a PoSyntaxError or DuplicateMessageError
    """
    try:
        entries, trailing = Parser(tokens).parse()
    except PoSyntaxError as e:
        return None, e

    top_comments: list[str] = []
    headers: list[str] = []

    parsed_any = bool(entries)
    if entries:
        comment_tokens, first = entries[0]
        if isinstance(first, Singular) and first.key() == (None, "") and not first.obsolete:
            headers = [fragment for fragment in first.msgstr if fragment]
            top_comments = [token.value for token in comment_tokens]
            entries = entries[1:]

    messages = [message for _, message in entries]

    if trailing:
        if parsed_any:
            logger.warning(
                "Dropping %d comment line(s) after the last message (line %d)",
                len(trailing), trailing[0].line,
            )
        else:
            top_comments = [token.value for token in trailing]

    duplicate = find_duplicate(messages)
    if duplicate is not None:
        return None, duplicate

    return (top_comments, headers, messages), None
