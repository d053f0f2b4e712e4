#!/usr/bin/env python3
"""
Tests for Jaro distance, the threshold matcher and fuzzy message merging.
"""

import pytest

from pokit.fuzzy import best_match, jaro_distance, matcher, merge
from pokit.messages import Plural, Singular


@pytest.mark.parametrize("a, b, expected", [
    ("MARTHA", "MARHTA", 0.9444),
    ("DIXON", "DICKSONX", 0.7667),
    ("JELLYFISH", "SMELLYFISH", 0.8963),
    ("abc", "xyz", 0.0),
])
def test_jaro_distance(a, b, expected):
    assert round(jaro_distance(a, b), 4) == expected


def test_jaro_distance_edges():
    assert jaro_distance("", "") == 1.0
    assert jaro_distance("abc", "") == 0.0
    assert jaro_distance("same", "same") == 1.0
    assert jaro_distance("ab", "ba") == jaro_distance("ba", "ab")


def test_threshold_boundary():
    """Test 3: a distance equal to the threshold matches, below it does not."""
    new = Singular(msgid="hello worlds!")
    old = Singular(msgid="hello world!")
    score = jaro_distance(new.text, old.text)

    assert matcher(score)(new, old) == score
    assert matcher(score + 1e-9)(new, old) is None


def test_context_and_plural_are_ignored():
    new = Plural(msgid="apple", msgctxt="fruit", msgid_plural="apples")
    old = Singular(msgid="apple", msgctxt="company")
    assert matcher(1.0)(new, old) == 1.0


def test_best_match_prefers_highest_then_first():
    message = Singular(msgid="hello worlds!")
    candidates = [
        Singular(msgid="hello there"),
        Singular(msgid="hello world!", msgstr="first"),
        Singular(msgid="hello world!", msgctxt="x", msgstr="second"),
    ]
    assert best_match(message, candidates, 0.8).translation == "first"
    assert best_match(message, candidates[:1], 0.8) is None


def test_merge_singular():
    new = Singular(msgid="hello worlds!", references=[("lib/a.ex", 3)], comments=["# new"])
    old = Singular(msgid="hello world!", msgstr="ciao mondo", comments=["# old"])
    merged = merge(new, old)
    assert merged.text == "hello worlds!"
    assert merged.msgstr == ["ciao mondo"]
    assert merged.comments == ["# old"]
    assert merged.references == [("lib/a.ex", 3)]
    assert merged.is_fuzzy
    # inputs are untouched
    assert not new.is_fuzzy
    assert new.msgstr == []


def test_merge_plural_from_singular_broadcasts():
    new = Plural(msgid="file", msgid_plural="files", msgstr={0: [""], 1: [""], 2: [""]})
    old = Singular(msgid="a file", msgstr="un file")
    merged = merge(new, old)
    assert merged.msgstr == {0: ["un file"], 1: ["un file"], 2: ["un file"]}


def test_merge_singular_from_plural_takes_first_slot():
    new = Singular(msgid="file")
    old = Plural(msgid="files", msgid_plural="filess", msgstr={0: ["uno"], 1: ["molti"]})
    assert merge(new, old).msgstr == ["uno"]
