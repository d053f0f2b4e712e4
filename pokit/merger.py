#!/usr/bin/env python3
"""
Merging of PO and POT files.

``merge`` brings a translated PO file up to date with a new template:

1. messages with the same (msgctxt, msgid) keep their translation
2. otherwise, when fuzzy matching is on, the closest unused old message
   whose msgid is similar enough lends its translation, and the result
   is flagged fuzzy
3. otherwise the new message is taken untranslated

Old messages left over are dropped or kept as obsolete (``#~``).

``merge_template`` does the same for a POT file against freshly extracted
messages, without translations or fuzzy matching.
"""

import logging
from dataclasses import asdict, dataclass, replace
from typing import Optional

from . import fuzzy
from .config import MergePolicy
from .errors import NonEmptyMsgstrError, PluralFormsError
from .messages import (
    AUTOGEN_FLAG,
    FUZZY_FLAG,
    AnyMessage,
    MessageCollection,
    Plural,
    Reference,
    empty_plural_msgstr,
    reshape_msgstr,
)
from .plural import (
    PluralForms,
    parse_plural_forms,
    plural_count,
    plural_forms_from_headers,
    plural_forms_header,
)

logger = logging.getLogger(__name__)

NEW_PO_COMMENTS = [
    '## "msgid"s in this file come from POT (.pot) files.',
    "##",
    '## Do not add, change, or remove "msgid"s manually here as',
    "## they're tied to the ones in the corresponding POT file",
    "## (with the same domain).",
    "##",
    '## Use "pokit merge" to merge POT files into PO files.',
]


@dataclass
class MergeStats:
    """Counts reported by a merge."""
    new: int = 0
    exact_matches: int = 0
    fuzzy_matches: int = 0
    removed: int = 0
    marked_as_obsolete: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def _index_by_key(messages: list[AnyMessage]) -> tuple[dict, list[AnyMessage]]:
    """
    Key -> message, preferring live messages over obsolete ones.

    Messages shadowed by another with the same key are returned apart so
    they can go through the same disposal as unmatched ones.
    """
    index = {}
    shadowed = []
    for message in messages:
        key = message.key()
        if key not in index:
            index[key] = message
        elif index[key].obsolete and not message.obsolete:
            shadowed.append(index[key])
            index[key] = message
        else:
            shadowed.append(message)
    return index, shadowed


def _needs_plural_count(collection: MessageCollection) -> bool:
    return any(isinstance(message, Plural) for message in collection.messages)


def _resolve_plural_forms(headers: list[str], locale: Optional[str], policy: MergePolicy) -> PluralForms:
    """Explicit option, then the Plural-Forms header, then the locale default."""
    if policy.plural_forms is not None:
        return PluralForms(policy.plural_forms)
    header = plural_forms_from_headers(headers)
    if header:
        try:
            return parse_plural_forms(header)
        except PluralFormsError:
            if locale is None:
                raise
            logger.warning("Ignoring invalid Plural-Forms header %r, using defaults for %s", header, locale)
    return PluralForms(plural_count(locale))


def _with_plural_slots(message: AnyMessage, count: int) -> AnyMessage:
    if isinstance(message, Plural) and not message.is_translated():
        return replace(message, msgstr=empty_plural_msgstr(count))
    return message


def _kept_flags(new: AnyMessage, old: AnyMessage, policy: MergePolicy) -> set[str]:
    flags = set(new.flags)
    for flag in policy.custom_flags_to_keep:
        if flag in old.flags:
            flags.add(flag)
    return flags


def exact_merge(new: AnyMessage, old: AnyMessage, policy: MergePolicy) -> AnyMessage:
    """
    Merge two messages with the same key.

    msgids, extracted comments and references come from ``new``; msgstr
    and translator comments come from ``old``. The fuzzy flag survives
    from ``old``. The result is never obsolete.
    """
    flags = _kept_flags(new, old, policy)
    if FUZZY_FLAG in old.flags:
        flags.add(FUZZY_FLAG)
    return replace(
        new,
        msgstr=reshape_msgstr(old, new),
        comments=list(old.comments),
        flags=flags,
        obsolete=False,
    )


def fuzzy_merge(new: AnyMessage, old: AnyMessage, policy: MergePolicy) -> AnyMessage:
    merged = fuzzy.merge(new, old)
    merged = replace(merged, flags=merged.flags | _kept_flags(new, old, policy))
    if policy.store_previous_message_on_fuzzy_match:
        merged = replace(merged, previous_messages=merged.previous_messages + [old])
    return merged


def merge(
    old: MessageCollection,
    new: MessageCollection,
    locale: Optional[str] = None,
    policy: Optional[MergePolicy] = None,
) -> tuple[MessageCollection, MergeStats]:
    """
    Merge an existing PO file with a new template.

    Args:
        old: The translated file
        new: The authoritative message list (usually a POT file)
        locale: Locale of ``old``, used for plural slots when neither the
            policy nor the Plural-Forms header of ``old`` gives a count
        policy: Merge options (defaults to MergePolicy())

    Returns:
        (merged collection, stats)
    """
    policy = policy or MergePolicy()
    count = 0
    if _needs_plural_count(new):
        count = _resolve_plural_forms(old.headers, locale, policy).nplurals

    index, shadowed = _index_by_key(old.messages)
    unused = dict(index)
    stats = MergeStats()
    merged = []

    for message in new.messages:
        message = _with_plural_slots(message, count)
        key = message.key()

        existing = index.get(key)
        if existing is not None:
            unused.pop(key, None)
            merged.append(exact_merge(message, existing, policy))
            stats.exact_matches += 1
            continue

        if policy.fuzzy:
            candidate = fuzzy.best_match(message, unused.values(), policy.fuzzy_threshold)
            if candidate is not None:
                unused.pop(candidate.key())
                merged.append(fuzzy_merge(message, candidate, policy))
                stats.fuzzy_matches += 1
                continue

        merged.append(message)
        stats.new += 1

    for leftover in list(unused.values()) + shadowed:
        if policy.on_obsolete == "mark_as_obsolete":
            merged.append(replace(leftover, obsolete=True))
            stats.marked_as_obsolete += 1
        else:
            stats.removed += 1

    result = MessageCollection(
        messages=merged,
        headers=list(old.headers),
        top_comments=list(old.top_comments),
        source_path=old.source_path,
    )
    result = prune_references(result, policy.write_reference_comments, policy.write_reference_line_numbers)

    logger.info(
        "Merged %s: %d new, %d exact, %d fuzzy, %d removed, %d obsolete",
        old.source_path or "<messages>",
        stats.new, stats.exact_matches, stats.fuzzy_matches,
        stats.removed, stats.marked_as_obsolete,
    )
    return result, stats


def _strip_template_comments(message: AnyMessage) -> AnyMessage:
    comments = [comment for comment in message.comments if not comment.startswith("##")]
    return replace(message, comments=comments)


def new_from_template(
    template: MessageCollection,
    locale: str,
    policy: Optional[MergePolicy] = None,
) -> tuple[MessageCollection, MergeStats]:
    """
    Create a PO file for ``locale`` from a template.

    The result carries ``Language`` and ``Plural-Forms`` headers, comments
    starting with "##" are removed from messages, and plural messages get
    one empty msgstr per plural form. The number of forms comes from
    ``policy.plural_forms``, then the template's own Plural-Forms header,
    then the locale default, so a locale without a built-in rule works
    as long as one of the first two is given.
    """
    policy = policy or MergePolicy()
    forms = _resolve_plural_forms(template.headers, locale, policy)
    count = forms.nplurals
    if forms.expression is not None:
        plural_forms = forms.to_header()
    else:
        plural_forms = plural_forms_header(locale, count)
    messages = [
        _with_plural_slots(_strip_template_comments(message), count)
        for message in template.messages
    ]
    headers = [
        f"Language: {locale}\n",
        f"Plural-Forms: {plural_forms}\n",
    ]
    result = MessageCollection(
        messages=messages,
        headers=headers,
        top_comments=list(NEW_PO_COMMENTS),
    )
    result = prune_references(result, policy.write_reference_comments, policy.write_reference_line_numbers)
    logger.info("Created %s file with %d messages", locale, len(messages))
    return result, MergeStats(new=len(messages))


def ensure_empty_msgstr(message: AnyMessage):
    """Raise NonEmptyMsgstrError if a template message carries a translation."""
    if message.is_translated():
        raise NonEmptyMsgstrError(message.text)


def _is_protected(message: AnyMessage, policy: MergePolicy) -> bool:
    pattern = policy.purge_exclusion
    if pattern is None:
        return False
    return any(pattern.search(file) for file, _line in message.references)


def merge_template(
    old: MessageCollection,
    fresh: MessageCollection,
    policy: Optional[MergePolicy] = None,
) -> tuple[MessageCollection, MergeStats]:
    """
    Update a POT file with freshly extracted messages.

    Old messages that are no longer extracted are kept when one of their
    references matches ``policy.excluded_refs_from_purging`` or when they
    were added by hand (no autogeneration flag). Autogenerated ones are
    dropped.

    Raises:
        NonEmptyMsgstrError: If either side has a translated message
    """
    policy = policy or MergePolicy()
    for message in old.messages + fresh.messages:
        ensure_empty_msgstr(message)

    index, shadowed = _index_by_key(old.messages)
    unused = dict(index)
    stats = MergeStats()
    merged = []

    for message in fresh.messages:
        key = message.key()
        existing = index.get(key)
        if existing is not None:
            unused.pop(key, None)
            merged.append(replace(
                message,
                comments=list(existing.comments),
                flags=_kept_flags(message, existing, policy),
            ))
            stats.exact_matches += 1
        else:
            merged.append(message)
            stats.new += 1

    for leftover in list(unused.values()) + shadowed:
        if _is_protected(leftover, policy) or AUTOGEN_FLAG not in leftover.flags:
            merged.append(leftover)
        else:
            stats.removed += 1

    result = MessageCollection(
        messages=merged,
        headers=list(old.headers),
        top_comments=list(old.top_comments),
        source_path=old.source_path,
    )
    result = prune_references(result, policy.write_reference_comments, policy.write_reference_line_numbers)
    return result, stats


def _without_line_numbers(references: list[Reference]) -> list[Reference]:
    files = []
    for file, _line in references:
        if (file, None) not in files:
            files.append((file, None))
    return files


def prune_references(
    collection: MessageCollection,
    write_references: bool = True,
    write_line_numbers: bool = True,
) -> MessageCollection:
    """Drop references, or only their line numbers, from every message."""
    if write_references and write_line_numbers:
        return collection

    messages = []
    for message in collection.messages:
        if not write_references:
            references = []
        else:
            references = _without_line_numbers(message.references)
        messages.append(replace(message, references=references))
    return replace(collection, messages=messages)
