#!/usr/bin/env python3
"""
Fuzzy matching of messages.

Similarity is the Jaro distance between the logical msgids of two
messages. Context and msgid_plural don't take part in the score.
"""

from dataclasses import replace
from typing import Callable, Iterable, Optional

from .messages import FUZZY_FLAG, AnyMessage, reshape_msgstr


def jaro_distance(a: str, b: str) -> float:
    """
    Jaro similarity of two strings, from 0.0 (nothing in common) to 1.0 (equal).

    >>> round(jaro_distance("MARTHA", "MARHTA"), 4)
    0.9444
    """
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0

    window = max(max(len(a), len(b)) // 2 - 1, 0)
    a_matched = [False] * len(a)
    b_matched = [False] * len(b)

    matches = 0
    for i, char in enumerate(a):
        low = max(0, i - window)
        high = min(i + window + 1, len(b))
        for j in range(low, high):
            if not b_matched[j] and b[j] == char:
                a_matched[i] = True
                b_matched[j] = True
                matches += 1
                break

    if matches == 0:
        return 0.0

    # count matched characters that appear in a different order
    transpositions = 0
    j = 0
    for i, char in enumerate(a):
        if not a_matched[i]:
            continue
        while not b_matched[j]:
            j += 1
        if char != b[j]:
            transpositions += 1
        j += 1

    return (
        matches / len(a)
        + matches / len(b)
        + (matches - transpositions / 2) / matches
    ) / 3


def distance(new: AnyMessage, existing: AnyMessage) -> float:
    return jaro_distance(new.text, existing.text)


def matcher(threshold: float) -> Callable[[AnyMessage, AnyMessage], Optional[float]]:
    """
    Build a match function for ``threshold``.

    The returned function gives the distance of two messages when it is at
    least ``threshold``, and None otherwise.
    """
    def match(new: AnyMessage, existing: AnyMessage) -> Optional[float]:
        score = distance(new, existing)
        return score if score >= threshold else None

    return match


def best_match(
    message: AnyMessage,
    candidates: Iterable[AnyMessage],
    threshold: float,
) -> Optional[AnyMessage]:
    """Highest-scoring candidate at or above the threshold; the first one wins ties."""
    match = matcher(threshold)
    best = None
    best_score = -1.0
    for candidate in candidates:
        score = match(message, candidate)
        if score is not None and score > best_score:
            best = candidate
            best_score = score
    return best


def merge(new: AnyMessage, existing: AnyMessage) -> AnyMessage:
    """
    Merge a message with a fuzzy-matched existing one.

    Everything comes from ``new`` except the translator comments and the
    msgstr, which come from ``existing``. The result is flagged fuzzy.
    """
    return replace(
        new,
        comments=list(existing.comments),
        msgstr=reshape_msgstr(existing, new),
        flags=new.flags | {FUZZY_FLAG},
        obsolete=False,
    )
