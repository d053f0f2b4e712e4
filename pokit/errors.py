#!/usr/bin/env python3
"""
Error types raised (or returned) by pokit.

Every error has ``to_dict()`` so the CLI can report it as JSON.
Positioned errors carry a 1-based line and, for file operations, the path.
"""

from typing import Optional


class PokitError(Exception):
    """Base class for all pokit errors."""

    def to_dict(self) -> dict:
        return {
            "type": type(self).__name__,
            "message": str(self),
        }


class PoSyntaxError(PokitError):
    """Tokenizer or parser failure at a given line."""

    def __init__(self, line: int, reason: str, file: Optional[str] = None):
        super().__init__(line, reason)
        self.line = line
        self.reason = reason
        self.file = file

    def __str__(self) -> str:
        if self.file:
            return f"{self.file}:{self.line}: {self.reason}"
        return f"{self.line}: {self.reason}"

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({"line": self.line, "reason": self.reason, "file": self.file})
        return data


class DuplicateMessageError(PoSyntaxError):
    """Two non-obsolete messages share (msgctxt, msgid)."""

    def __init__(
        self,
        line: int,
        earlier_line: int,
        msgid: str,
        msgid_plural: Optional[str] = None,
        file: Optional[str] = None,
    ):
        reason = f"found duplicate on line {earlier_line} for msgid: '{msgid}'"
        if msgid_plural is not None:
            reason += f" and msgid_plural: '{msgid_plural}'"
        super().__init__(line, reason, file)
        self.earlier_line = earlier_line
        self.msgid = msgid
        self.msgid_plural = msgid_plural

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            "earlier_line": self.earlier_line,
            "msgid": self.msgid,
            "msgid_plural": self.msgid_plural,
        })
        return data


class FileError(PokitError):
    """A file could not be read."""

    def __init__(self, path: str, reason: str):
        super().__init__(path, reason)
        self.path = path
        self.reason = reason

    def __str__(self) -> str:
        return f"could not read {self.path}: {self.reason}"

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({"path": self.path, "reason": self.reason})
        return data


class UnknownLocaleError(PokitError):
    """No plural rule is known for a locale."""

    def __init__(self, locale: str):
        super().__init__(locale)
        self.locale = locale

    def __str__(self) -> str:
        return (
            f"unknown locale {self.locale!r}. If this is a locale you need to handle, "
            f"add a Plural-Forms header or pass the number of plural forms explicitly"
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["locale"] = self.locale
        return data


class PluralFormsError(PokitError):
    """Malformed Plural-Forms header or plural expression."""


class MissingPluralFormError(PokitError):
    """A plural message lacks the msgstr slot a count resolved to."""

    def __init__(self, form: int, locale: str, file: Optional[str] = None, line: Optional[int] = None):
        super().__init__(form, locale, file, line)
        self.form = form
        self.locale = locale
        self.file = file
        self.line = line

    def __str__(self) -> str:
        location = f"{self.file or '<unknown>'}:{self.line if self.line is not None else '?'}"
        return (
            f"plural form {self.form} is required for locale {self.locale!r} "
            f"but is missing for message at {location}"
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({"form": self.form, "locale": self.locale, "file": self.file, "line": self.line})
        return data


class NonEmptyMsgstrError(PokitError):
    """A template-side message carries a translation."""

    def __init__(self, msgid: str):
        super().__init__(msgid)
        self.msgid = msgid

    def __str__(self) -> str:
        return f"message with msgid {self.msgid!r} has a non-empty msgstr, expected an untranslated template message"


class MissingBindingsError(PokitError):
    """Interpolation left some %{bindings} unbound."""

    def __init__(self, text: str, missing: list[str]):
        super().__init__(text, missing)
        self.text = text
        self.missing = missing

    def __str__(self) -> str:
        return f"missing interpolation keys {', '.join(self.missing)} for message {self.text!r}"


class InvalidBindingsError(PokitError):
    """A %{key:inner} binding was bound to something that is not callable."""

    def __init__(self, invalid: list[str]):
        super().__init__(invalid)
        self.invalid = invalid

    def __str__(self) -> str:
        return f"bindings {', '.join(self.invalid)} must be callable to take inner text"


class ConfigError(PokitError):
    """Invalid merge configuration."""

    def __init__(self, reason: str, path: Optional[str] = None):
        super().__init__(reason, path)
        self.reason = reason
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"{self.path}: {self.reason}"
        return self.reason
