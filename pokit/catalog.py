#!/usr/bin/env python3
"""
Runtime lookup over a parsed PO file.

    catalog = Catalog(parse_file_or_raise("it/LC_MESSAGES/default.po"), "it")
    catalog.gettext("Hello %{name}", {"name": "José"})
    catalog.ngettext("One file", "%{count} files", 3)

Untranslated and fuzzy messages fall back to the msgid (or msgid_plural).
"""

from typing import Any, Mapping, Optional

from .errors import InvalidBindingsError, MissingBindingsError, MissingPluralFormError
from .interpolation import InvalidBindings, MissingBindings, interpolate
from .messages import MessageCollection, Plural, Singular
from .plural import plural_index


def _render(text: str, bindings: Optional[Mapping[str, Any]]) -> str:
    result = interpolate(text, bindings or {})
    if isinstance(result, InvalidBindings):
        raise InvalidBindingsError(result.invalid)
    if isinstance(result, MissingBindings):
        raise MissingBindingsError(text, result.missing)
    return result.text


class Catalog:
    """Translations of one locale, looked up by (msgctxt, msgid)."""

    def __init__(self, collection: MessageCollection, locale: str):
        self.locale = locale
        self.source_path = collection.source_path
        self.plural_forms = collection.header("Plural-Forms")
        self._messages = {
            message.key(): message
            for message in collection.messages
            if not message.obsolete
        }

    def __len__(self) -> int:
        return len(self._messages)

    def __contains__(self, key) -> bool:
        return key in self._messages

    def _usable(self, key):
        message = self._messages.get(key)
        if message is None or message.is_fuzzy or not message.is_translated():
            return None
        return message

    def gettext(
        self,
        msgid: str,
        bindings: Optional[Mapping[str, Any]] = None,
        msgctxt: Optional[str] = None,
    ) -> str:
        message = self._usable((msgctxt, msgid))
        text = msgid
        if isinstance(message, Singular):
            text = message.translation
        return _render(text, bindings)

    def ngettext(
        self,
        msgid: str,
        msgid_plural: str,
        n: int,
        bindings: Optional[Mapping[str, Any]] = None,
        msgctxt: Optional[str] = None,
    ) -> str:
        """
        Plural lookup. ``count`` is bound to ``n`` unless given explicitly.

        Raises:
            MissingPluralFormError: If the translation lacks the slot ``n``
                resolves to
        """
        bindings = {"count": n, **(bindings or {})}
        message = self._usable((msgctxt, msgid))

        if not isinstance(message, Plural):
            return _render(msgid if n == 1 else msgid_plural, bindings)

        index = plural_index(self.locale, self.plural_forms, n)
        text = message.translation(index)
        if text is None:
            raise MissingPluralFormError(index, self.locale, self.source_path, message.source_line)
        return _render(text, bindings)

    def pgettext(self, msgctxt: str, msgid: str, bindings: Optional[Mapping[str, Any]] = None) -> str:
        return self.gettext(msgid, bindings, msgctxt=msgctxt)

    def npgettext(
        self,
        msgctxt: str,
        msgid: str,
        msgid_plural: str,
        n: int,
        bindings: Optional[Mapping[str, Any]] = None,
    ) -> str:
        return self.ngettext(msgid, msgid_plural, n, bindings, msgctxt=msgctxt)
