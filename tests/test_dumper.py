#!/usr/bin/env python3
"""
Tests for the PO dumper: layout, escaping, reference wrapping and the
dump -> parse -> dump round trip.
"""

import pytest

from pokit.messages import MessageCollection, Plural, Singular
from pokit.po import dump, iter_dump, parse_or_raise
from pokit.po.dumper import escape, reference_lines


def test_header_and_messages():
    """Test 1: header entry first, blank line between entries."""
    collection = MessageCollection(
        headers=["Language: it\n"],
        top_comments=["# Italian"],
        messages=[
            Singular(msgid="foo", msgstr="bar"),
            Plural(msgid="a", msgid_plural="as", msgstr={1: "xs", 0: "x"}),
        ],
    )
    assert dump(collection) == (
        "# Italian\n"
        'msgid ""\n'
        'msgstr ""\n'
        '"Language: it\\n"\n'
        "\n"
        'msgid "foo"\n'
        'msgstr "bar"\n'
        "\n"
        'msgid "a"\n'
        'msgid_plural "as"\n'
        'msgstr[0] "x"\n'
        'msgstr[1] "xs"\n'
    )


def test_no_header_entry_without_headers():
    collection = MessageCollection(messages=[Singular(msgid="foo", msgstr="")])
    assert dump(collection) == 'msgid "foo"\nmsgstr ""\n'


def test_comment_order():
    """Test 3: extracted, flags, references, translator comments, strings."""
    message = Singular(
        msgid="foo",
        msgstr="bar",
        msgctxt="ctx",
        comments=["# translator"],
        extracted_comments=["extracted"],
        references=[("lib/a.ex", 1), ("lib/b.ex", None)],
        flags={"ruby-format", "fuzzy"},
    )
    assert dump(MessageCollection(messages=[message])) == (
        "#. extracted\n"
        "#, fuzzy, ruby-format\n"
        "#: lib/a.ex:1 lib/b.ex\n"
        "# translator\n"
        'msgctxt "ctx"\n'
        'msgid "foo"\n'
        'msgstr "bar"\n'
    )


def test_escaping():
    assert escape('a"b\\c\nd\te\rf') == 'a\\"b\\\\c\\nd\\te\\rf'


def test_multiple_fragments():
    message = Singular(msgid=["", "long ", "text"], msgstr=["", "testo"])
    assert dump(MessageCollection(messages=[message])) == (
        'msgid ""\n'
        '"long "\n'
        '"text"\n'
        'msgstr ""\n'
        '"testo"\n'
    )


def test_reference_wrapping():
    references = [(f"lib/some/long/path/file_{i}.ex", i) for i in range(10)]
    lines = reference_lines(references, width=80)
    assert len(lines) > 1
    assert all(len(line) <= 80 for line in lines)
    assert all(line.startswith("#: ") for line in lines)


def test_single_long_reference_is_not_split():
    lines = reference_lines([("x" * 100, 1)], width=80)
    assert lines == ["#: " + "x" * 100 + ":1"]


def test_obsolete_prefix():
    message = Singular(msgid=["a", "b"], msgstr="c", obsolete=True, comments=["# note"])
    assert dump(MessageCollection(messages=[message])) == (
        "# note\n"
        '#~ msgid "a"\n'
        '#~ "b"\n'
        '#~ msgstr "c"\n'
    )


def test_previous_messages():
    previous = Singular(msgid="hello world!", msgctxt="greeting")
    message = Singular(msgid="hello worlds!", msgstr="ciao", flags={"fuzzy"}, previous_messages=[previous])
    assert dump(MessageCollection(messages=[message])) == (
        "#, fuzzy\n"
        '#| msgctxt "greeting"\n'
        '#| msgid "hello world!"\n'
        'msgid "hello worlds!"\n'
        'msgstr "ciao"\n'
    )


def test_iter_dump_yields_chunks():
    collection = MessageCollection(messages=[Singular(msgid="a"), Singular(msgid="b")])
    chunks = list(iter_dump(collection))
    assert len(chunks) > 1
    assert "".join(chunks) == dump(collection)


ROUND_TRIP_SOURCES = [
    (
        "# top\n"
        '#, fuzzy\n'
        'msgid ""\n'
        'msgstr ""\n'
        '"Language: it\\n"\n'
        '"Plural-Forms: nplurals=2; plural=(n != 1);\\n"\n'
        "\n"
        "#. note\n"
        "#: lib/a.ex:1 lib/a.ex:2\n"
        "# hand\n"
        'msgctxt "c"\n'
        'msgid "a \\"quoted\\"\\n"\n'
        '"second"\n'
        'msgstr "tab\\there"\n'
    ),
    (
        'msgid "one"\n'
        'msgid_plural "many"\n'
        'msgstr[0] ""\n'
        'msgstr[2] "tre"\n'
        "\n"
        "#, fuzzy\n"
        '#| msgid "gone"\n'
        '#~ msgid "old"\n'
        '#~ msgstr "vecchio"\n'
    ),
    "# only a comment\n",
    "",
    'msgid ""\nmsgstr ""\n\nmsgid ""\nmsgstr "x"\n',
    'msgctxt "c"\nmsgid ""\nmsgstr "x"\n',
]


@pytest.mark.parametrize("source", ROUND_TRIP_SOURCES)
def test_round_trip(source):
    first = dump(parse_or_raise(source))
    second = dump(parse_or_raise(first))
    assert first == second


def test_leading_empty_msgid_gets_an_empty_header_entry():
    collection = MessageCollection(messages=[Singular(msgid="", msgstr="x")])
    text = dump(collection)
    assert text == 'msgid ""\nmsgstr ""\n\nmsgid ""\nmsgstr "x"\n'
    assert parse_or_raise(text).messages[0].translation == "x"


def test_dump_of_own_output_is_identical_to_input():
    source = ROUND_TRIP_SOURCES[0]
    assert dump(parse_or_raise(source)) == source
