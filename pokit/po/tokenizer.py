#!/usr/bin/env python3
"""
Tokenizer for PO/POT text.

Produces a flat list of line-tagged tokens:

    keyword       msgid, msgid_plural, msgctxt, msgstr
    plural_index  the N of msgstr[N]
    str           unescaped contents of a "..." literal
    comment       a whole "#..." line, categorized later by the parser

Lines starting with ``#~`` belong to obsolete messages; the rest of such a
line is tokenized normally and its tokens are marked ``obsolete``.
"""

from dataclasses import dataclass
from typing import Optional, Union

from ..errors import PoSyntaxError

KEYWORD = "keyword"
PLURAL_INDEX = "plural_index"
STR = "str"
COMMENT = "comment"

# msgid_plural must be tried before msgid
KEYWORDS = ("msgid_plural", "msgid", "msgctxt", "msgstr")

WHITESPACE = " \t\r\n"

ESCAPES = {
    '"': '"',
    "\\": "\\",
    "n": "\n",
    "t": "\t",
    "r": "\r",
}


@dataclass
class Token:
    kind: str
    line: int
    value: Union[str, int]
    obsolete: bool = False

    def describe(self) -> str:
        """Token as it would appear in source, for error messages."""
        if self.kind == STR:
            return '"' + str(self.value) + '"'
        if self.kind == PLURAL_INDEX:
            return f"msgstr[{self.value}]"
        return str(self.value)


class Tokenizer:
    """Single forward scan over the input with a running line counter."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.line = 1
        self.obsolete = False
        self.tokens: list[Token] = []

    def tokenize(self) -> list[Token]:
        """Scan the whole input. Raises PoSyntaxError on the first bad token."""
        text = self.text
        while self.pos < len(text):
            char = text[self.pos]
            if char == "\n":
                self.line += 1
                self.pos += 1
                self.obsolete = False
            elif char in WHITESPACE:
                self.pos += 1
            elif char == "#":
                if text.startswith("#~", self.pos) and not text.startswith("#~|", self.pos):
                    self.obsolete = True
                    self.pos += 2
                else:
                    self._comment()
            elif char == '"':
                self._string()
            else:
                self._keyword()
        return self.tokens

    def _emit(self, kind: str, value):
        self.tokens.append(Token(kind, self.line, value, self.obsolete))

    def _comment(self):
        end = self.text.find("\n", self.pos)
        if end == -1:
            end = len(self.text)
        self._emit(COMMENT, self.text[self.pos:end].rstrip("\r"))
        self.pos = end

    def _string(self):
        text = self.text
        chars = []
        pos = self.pos + 1
        while True:
            if pos >= len(text):
                raise PoSyntaxError(self.line, 'missing token "')
            char = text[pos]
            if char == '"':
                break
            if char == "\n":
                raise PoSyntaxError(self.line, "newline in string")
            if char == "\\":
                if pos + 1 >= len(text):
                    raise PoSyntaxError(self.line, 'missing token "')
                escaped = ESCAPES.get(text[pos + 1])
                if escaped is None:
                    raise PoSyntaxError(self.line, "unsupported escape code")
                chars.append(escaped)
                pos += 2
            else:
                chars.append(char)
                pos += 1
        self._emit(STR, "".join(chars))
        self.pos = pos + 1

    def _followed_by_whitespace(self, pos: int) -> bool:
        return pos < len(self.text) and self.text[pos] in WHITESPACE

    def _keyword(self):
        text = self.text
        if text.startswith("msgstr[", self.pos):
            self._plural_index()
            return

        for keyword in KEYWORDS:
            if text.startswith(keyword, self.pos):
                end = self.pos + len(keyword)
                if not self._followed_by_whitespace(end):
                    if end < len(text) and (text[end].isalnum() or text[end] == "_"):
                        # longer word such as "msgidx"; report it as unknown
                        break
                    raise PoSyntaxError(self.line, f"no space after '{keyword}'")
                self._emit(KEYWORD, keyword)
                self.pos = end
                return

        raise PoSyntaxError(self.line, f"unknown keyword '{self._word()}'")

    def _plural_index(self):
        text = self.text
        start = self.pos + len("msgstr[")
        end = start
        while end < len(text) and text[end].isascii() and text[end].isdigit():
            end += 1
        if end == start or end >= len(text) or text[end] != "]":
            raise PoSyntaxError(self.line, "invalid plural index")
        index = int(text[start:end])
        if not self._followed_by_whitespace(end + 1):
            raise PoSyntaxError(self.line, f"no space after 'msgstr[{index}]'")
        self._emit(PLURAL_INDEX, index)
        self.pos = end + 1

    def _word(self) -> str:
        text = self.text
        end = self.pos
        while end < len(text) and (text[end].isalnum() or text[end] == "_"):
            end += 1
        if end == self.pos:
            end += 1
        return text[self.pos:end]


def tokenize(text: str) -> tuple[Optional[list[Token]], Optional[PoSyntaxError]]:
    """
    Tokenize PO text.

    Args:
        text: Raw PO/POT content (BOM already handled by the caller)

    Returns:
        (tokens, None) on success, (None, error) at the first bad token
    """
    try:
        return Tokenizer(text).tokenize(), None
    except PoSyntaxError as e:
        return None, e
