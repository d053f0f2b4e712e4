#!/usr/bin/env python3
"""
Tests for merging PO files with templates, creating new PO files,
template merges and reference pruning.
"""

import pytest

from pokit.config import MergePolicy
from pokit.errors import NonEmptyMsgstrError, UnknownLocaleError
from pokit.messages import AUTOGEN_FLAG, MessageCollection, Plural, Singular
from pokit.merger import exact_merge, merge, merge_template, new_from_template, prune_references
from pokit.po import dump, parse_or_raise


@pytest.fixture
def old_po():
    return parse_or_raise(
        "# Italian file\n"
        'msgid ""\n'
        'msgstr ""\n'
        '"Language: it\\n"\n'
        "\n"
        "# translator says hi\n"
        "#, no-wrap\n"
        "#: lib/old.ex:1\n"
        'msgid "hello world!"\n'
        'msgstr "ciao mondo"\n'
        "\n"
        "#, fuzzy\n"
        'msgid "still fuzzy"\n'
        'msgstr "ancora"\n'
        "\n"
        'msgid "completely unrelated thing"\n'
        'msgstr "altro"\n',
        file="it/LC_MESSAGES/default.po",
    )


def test_fuzzy_match_example():
    """Test 1: a close msgid lends its translation and is flagged fuzzy."""
    old = parse_or_raise('msgid "hello world!"\nmsgstr "ciao mondo"\n')
    new = parse_or_raise('msgid "hello worlds!"\nmsgstr ""\n')
    merged, stats = merge(old, new, "it", MergePolicy(fuzzy_threshold=0.8))

    assert len(merged.messages) == 1
    message = merged.messages[0]
    assert message.text == "hello worlds!"
    assert message.msgstr == ["ciao mondo"]
    assert "fuzzy" in message.flags
    assert stats.to_dict() == {
        "new": 0, "exact_matches": 0, "fuzzy_matches": 1, "removed": 0, "marked_as_obsolete": 0,
    }


def test_exact_merge_rules(old_po):
    new = MessageCollection(messages=[
        Singular(
            msgid="hello world!",
            extracted_comments=["greeting"],
            references=[("lib/new.ex", 9)],
            flags={"ruby-format"},
            comments=["# template comment"],
        ),
        Singular(msgid="still fuzzy", flags=set()),
    ])
    merged, stats = merge(old_po, new, "it", MergePolicy(fuzzy=False))

    hello, still = merged.messages
    assert hello.msgstr == ["ciao mondo"]
    assert hello.comments == ["# translator says hi"]
    assert hello.extracted_comments == ["greeting"]
    assert hello.references == [("lib/new.ex", 9)]
    assert hello.flags == {"ruby-format"}
    assert still.flags == {"fuzzy"}
    assert stats.exact_matches == 2
    assert stats.removed == 1


def test_custom_flags_are_kept(old_po):
    new = MessageCollection(messages=[Singular(msgid="hello world!")])
    merged, _ = merge(old_po, new, "it", MergePolicy(custom_flags_to_keep=["no-wrap"]))
    assert merged.messages[0].flags == {"no-wrap"}


def test_headers_and_top_comments_come_from_old(old_po):
    merged, _ = merge(old_po, MessageCollection(headers=["Language: fr\n"]), "it")
    assert merged.headers == ["Language: it\n"]
    assert merged.top_comments == ["# Italian file"]
    assert merged.source_path == "it/LC_MESSAGES/default.po"


def test_idempotent_merge(old_po):
    """Test 5: merging a file with itself only finds exact matches."""
    merged, stats = merge(old_po, old_po, "it")
    assert stats.to_dict() == {
        "new": 0,
        "exact_matches": len(old_po.messages),
        "fuzzy_matches": 0,
        "removed": 0,
        "marked_as_obsolete": 0,
    }
    assert dump(merged) == dump(old_po)


def test_new_messages_without_match(old_po):
    new = MessageCollection(messages=[Singular(msgid="zzz qqq")])
    merged, stats = merge(old_po, new, "it")
    assert merged.messages[0].msgstr == []
    assert stats.new == 1
    assert stats.removed == 3


def test_mark_as_obsolete(old_po):
    new = MessageCollection(messages=[Singular(msgid="hello world!")])
    merged, stats = merge(old_po, new, "it", MergePolicy(fuzzy=False, on_obsolete="mark_as_obsolete"))
    assert [(m.text, m.obsolete) for m in merged.messages] == [
        ("hello world!", False),
        ("still fuzzy", True),
        ("completely unrelated thing", True),
    ]
    assert stats.marked_as_obsolete == 2
    assert stats.removed == 0


def test_obsolete_message_is_revived_by_exact_match():
    old = parse_or_raise('#~ msgid "back"\n#~ msgstr "tornato"\n')
    new = parse_or_raise('msgid "back"\nmsgstr ""\n')
    merged, stats = merge(old, new, "it")
    assert not merged.messages[0].obsolete
    assert merged.messages[0].msgstr == ["tornato"]
    assert stats.exact_matches == 1


def test_exact_match_result_is_never_obsolete():
    old = Singular(msgid="a", msgstr="uno")
    new = Singular(msgid="a", obsolete=True)
    merged = exact_merge(new, old, MergePolicy())
    assert not merged.obsolete
    assert merged.msgstr == ["uno"]


def test_obsolete_twin_of_a_live_message_is_disposed_of():
    old = parse_or_raise(
        'msgid "a"\nmsgstr "live"\n\n'
        '#~ msgid "a"\n#~ msgstr "dead"\n'
    )
    new = parse_or_raise('msgid "b"\nmsgstr ""\n')

    merged, stats = merge(old, new, "it", MergePolicy(on_obsolete="mark_as_obsolete"))
    assert stats.new == 1
    assert stats.marked_as_obsolete == 2
    assert [(m.text, m.translation, m.obsolete) for m in merged.messages] == [
        ("b", "", False),
        ("a", "live", True),
        ("a", "dead", True),
    ]

    merged, stats = merge(old, new, "it")
    assert stats.removed == 2
    assert [m.text for m in merged.messages] == ["b"]


def test_obsolete_twin_is_kept_alongside_exact_match():
    old = parse_or_raise(
        '#~ msgid "a"\n#~ msgstr "dead"\n\n'
        'msgid "a"\nmsgstr "live"\n'
    )
    new = parse_or_raise('msgid "a"\nmsgstr ""\n')
    merged, stats = merge(old, new, "it", MergePolicy(on_obsolete="mark_as_obsolete"))
    assert stats.exact_matches == 1
    assert stats.marked_as_obsolete == 1
    assert [(m.translation, m.obsolete) for m in merged.messages] == [("live", False), ("dead", True)]
    assert dump(parse_or_raise(dump(merged))) == dump(merged)


def test_fuzzy_candidates_are_used_once():
    old = parse_or_raise('msgid "hello world!"\nmsgstr "ciao mondo"\n')
    new = parse_or_raise(
        'msgid "hello worlds!"\nmsgstr ""\n\n'
        'msgid "hello world!!"\nmsgstr ""\n'
    )
    merged, stats = merge(old, new, "it")
    assert stats.fuzzy_matches == 1
    assert stats.new == 1
    assert merged.messages[1].msgstr == [""]


def test_store_previous_message_on_fuzzy_match():
    old = parse_or_raise('msgid "hello world!"\nmsgstr "ciao mondo"\n')
    new = parse_or_raise('msgid "hello worlds!"\nmsgstr ""\n')
    merged, _ = merge(old, new, "it", MergePolicy(store_previous_message_on_fuzzy_match=True))
    assert [p.text for p in merged.messages[0].previous_messages] == ["hello world!"]
    assert '#| msgid "hello world!"' in dump(merged)


def test_plural_slots_follow_locale():
    old = MessageCollection()
    new = MessageCollection(messages=[Plural(msgid="file", msgid_plural="files", msgstr={0: "", 1: ""})])
    merged, _ = merge(old, new, "pl")
    assert merged.messages[0].msgstr == {0: [""], 1: [""], 2: [""]}


def test_plural_slots_from_header_then_option():
    old = MessageCollection(headers=["Plural-Forms: nplurals=4; plural=n%4;\n"])
    new = MessageCollection(messages=[Plural(msgid="file", msgid_plural="files")])
    merged, _ = merge(old, new, "it")
    assert sorted(merged.messages[0].msgstr) == [0, 1, 2, 3]

    merged, _ = merge(old, new, "it", MergePolicy(plural_forms=1))
    assert sorted(merged.messages[0].msgstr) == [0]


def test_unknown_locale_with_plurals():
    new = MessageCollection(messages=[Plural(msgid="file", msgid_plural="files")])
    with pytest.raises(UnknownLocaleError):
        merge(MessageCollection(), new, "xx")


def test_merge_does_not_mutate_inputs(old_po):
    before = dump(old_po)
    new = parse_or_raise('msgid "hello worlds!"\nmsgstr ""\n')
    merge(old_po, new, "it", MergePolicy(on_obsolete="mark_as_obsolete"))
    assert dump(old_po) == before
    assert new.messages[0].flags == set()


def test_new_from_template():
    template = parse_or_raise(
        "## POT comment\n"
        'msgid ""\n'
        'msgstr ""\n'
        "\n"
        "## only for the template\n"
        "# kept\n"
        'msgid "hello"\n'
        'msgstr ""\n'
        "\n"
        'msgid "one"\n'
        'msgid_plural "many"\n'
        'msgstr[0] ""\n'
        'msgstr[1] ""\n'
    )
    created, stats = new_from_template(template, "ru")

    assert created.headers == [
        "Language: ru\n",
        "Plural-Forms: nplurals=3; plural=n%10==1 && n%100!=11 ? 0 : "
        "n%10>=2 && n%10<=4 && (n%100<10 || n%100>=20) ? 1 : 2;\n",
    ]
    assert created.top_comments[0] == '## "msgid"s in this file come from POT (.pot) files.'
    assert created.messages[0].comments == ["# kept"]
    assert sorted(created.messages[1].msgstr) == [0, 1, 2]
    assert stats.new == 2


def test_new_from_template_unknown_locale():
    with pytest.raises(UnknownLocaleError):
        new_from_template(MessageCollection(), "en-US")


def test_new_from_template_with_explicit_count_needs_no_locale_rule():
    template = MessageCollection(messages=[Plural(msgid="file", msgid_plural="files")])
    created, _ = new_from_template(template, "tlh", MergePolicy(plural_forms=2))
    assert created.header("Plural-Forms") == "nplurals=2; plural=0;"
    assert sorted(created.messages[0].msgstr) == [0, 1]


def test_new_from_template_uses_template_plural_forms():
    template = MessageCollection(
        headers=["Plural-Forms: nplurals=4; plural=n%4;\n"],
        messages=[Plural(msgid="file", msgid_plural="files")],
    )
    created, _ = new_from_template(template, "tlh")
    assert created.header("Plural-Forms") == "nplurals=4; plural=n%4;"
    assert sorted(created.messages[0].msgstr) == [0, 1, 2, 3]

    created, _ = new_from_template(template, "it", MergePolicy(plural_forms=2))
    assert created.header("Plural-Forms") == "nplurals=2; plural=n != 1;"


@pytest.fixture
def old_pot():
    return MessageCollection(messages=[
        Singular(msgid="kept", references=[("lib/a.ex", 1)], comments=["# manual note"], flags={AUTOGEN_FLAG}),
        Singular(msgid="gone", references=[("lib/a.ex", 2)], flags={AUTOGEN_FLAG}),
        Singular(msgid="protected", references=[("lib/generated/x.ex", 3)], flags={AUTOGEN_FLAG}),
        Singular(msgid="manual", references=[]),
    ])


def test_merge_template(old_pot):
    fresh = MessageCollection(messages=[
        Singular(msgid="kept", references=[("lib/a.ex", 10)], flags={AUTOGEN_FLAG}),
        Singular(msgid="brand new", references=[("lib/b.ex", 1)], flags={AUTOGEN_FLAG}),
    ])
    merged, stats = merge_template(old_pot, fresh, MergePolicy(excluded_refs_from_purging=r"^lib/generated/"))

    assert [m.text for m in merged.messages] == ["kept", "brand new", "protected", "manual"]
    assert merged.messages[0].references == [("lib/a.ex", 10)]
    assert merged.messages[0].comments == ["# manual note"]
    assert stats.exact_matches == 1
    assert stats.new == 1
    assert stats.removed == 1


def test_merge_template_rejects_translations(old_pot):
    fresh = MessageCollection(messages=[Singular(msgid="oops", msgstr="tradotto")])
    with pytest.raises(NonEmptyMsgstrError) as excinfo:
        merge_template(old_pot, fresh)
    assert excinfo.value.msgid == "oops"


def test_prune_references():
    collection = MessageCollection(messages=[
        Singular(msgid="a", references=[("lib/a.ex", 1), ("lib/a.ex", 2), ("lib/b.ex", 3)]),
    ])
    assert prune_references(collection) is collection

    no_lines = prune_references(collection, write_line_numbers=False)
    assert no_lines.messages[0].references == [("lib/a.ex", None), ("lib/b.ex", None)]

    no_refs = prune_references(collection, write_references=False)
    assert no_refs.messages[0].references == []
    assert collection.messages[0].references[0] == ("lib/a.ex", 1)
