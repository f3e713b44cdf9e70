"""Tests for markup decoding and the text-reading primitives."""

import pytest

from focusflow.importer.errors import MarkupCorruptError
from focusflow.importer.models import GenericNode
from focusflow.importer.parsers.document import (
    MAX_DOCUMENT_DEPTH,
    as_list,
    collect_text,
    extract_text,
    parse_document,
)
from tests.fixtures import OMNIFOCUS_NS, document_xml, nested_elements, task_xml


class TestParseDocument:
    def test_namespace_stripped_from_tags(self):
        root = parse_document(document_xml(task_xml("A", task_id="a")).encode())
        assert root.tag == "omnifocus"
        assert root.attributes == {"app-id": "com.omnigroup.OmniFocus3"}
        task = root.get("task")
        assert isinstance(task, GenericNode)
        assert task.tag == "task"
        assert task.attributes == {"id": "a"}

    def test_single_child_is_value_repeated_child_is_list(self):
        root = parse_document(document_xml(task_xml("A"), task_xml("B")))
        tasks = root.get("task")
        assert isinstance(tasks, list)
        assert len(tasks) == 2

        single = parse_document(document_xml(task_xml("A")))
        assert isinstance(single.get("task"), GenericNode)

    def test_plain_and_attributed_fields_read_the_same(self):
        """Bare text and attributed text-carrying elements both read as text."""
        xml = (
            f'<omnifocus xmlns="{OMNIFOCUS_NS}">'
            '<task id="t1"><name>Plain</name><note lang="en">Styled</note></task>'
            "</omnifocus>"
        )
        task = parse_document(xml).get("task")
        assert task.get("name") == "Plain"
        assert isinstance(task.get("note"), GenericNode)
        assert extract_text(task.get("name")) == "Plain"
        assert extract_text(task.get("note")) == "Styled"

    def test_surrounding_whitespace_trimmed_in_both_forms(self):
        xml = (
            "<omnifocus><task>"
            "<name>\n  Call Mom\n</name><note lang='en'>\n  Call Mom\n</note>"
            "</task></omnifocus>"
        )
        task = parse_document(xml).get("task")
        assert task.get("name") == "Call Mom"
        assert extract_text(task.get("name")) == extract_text(task.get("note")) == "Call Mom"

    def test_whitespace_only_leaf_is_empty(self):
        task = parse_document("<omnifocus><task><name>  \n </name></task></omnifocus>").get("task")
        assert extract_text(task.get("name")) == ""

    def test_nesting_at_depth_limit_parses(self):
        xml = nested_elements("x", MAX_DOCUMENT_DEPTH + 1, "leaf", attrs=' a="1"')
        node = parse_document(xml)
        for _ in range(MAX_DOCUMENT_DEPTH):
            node = node.get("x")
        assert node.text == "leaf"

    @pytest.mark.parametrize("depth", [MAX_DOCUMENT_DEPTH + 2, 990])
    def test_deep_nesting_is_corrupt(self, depth):
        with pytest.raises(MarkupCorruptError):
            parse_document(nested_elements("x", depth, attrs=' a="1"'))

    def test_empty_leaf_is_empty_string(self):
        root = parse_document("<omnifocus><task><project/><name/></task></omnifocus>")
        task = root.get("task")
        assert task.has("project")
        assert task.get("project") == ""
        assert extract_text(task.get("name")) == ""

    def test_bare_root(self):
        root = parse_document("<omnifocus/>")
        assert root.tag == "omnifocus"
        assert root.children == {}

    def test_encoding_declaration_honoured(self):
        xml = '<?xml version="1.0" encoding="iso-8859-1"?><omnifocus><task><name>Caf\xe9</name></task></omnifocus>'
        root = parse_document(xml.encode("iso-8859-1"))
        assert extract_text(root.get("task").get("name")) == "Café"

    @pytest.mark.parametrize("payload", [b"", b"   \n", "<omnifocus><task>", b"\x00\x01binary"])
    def test_corrupt_markup(self, payload):
        with pytest.raises(MarkupCorruptError):
            parse_document(payload)

    def test_entity_declarations_rejected(self):
        xml = (
            '<?xml version="1.0"?>'
            '<!DOCTYPE lolz [<!ENTITY lol "lol"><!ENTITY lol2 "&lol;&lol;&lol;">]>'
            "<omnifocus><task><name>&lol2;</name></task></omnifocus>"
        )
        with pytest.raises(MarkupCorruptError):
            parse_document(xml)


class TestExtractText:
    """extract_text is total over every slot shape."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, None),
            ("bare", "bare"),
            ("", ""),
            (GenericNode(tag="name", attributes={"lang": "en"}, text="boxed"), "boxed"),
            (GenericNode(tag="name", attributes={"lang": "en"}), None),
            ({"#text": "mapped", "@_lang": "en"}, "mapped"),
            ({"#text": 5}, None),
            ({"unrelated": "value"}, None),
            (["a", "b"], None),
            (42, None),
        ],
    )
    def test_extract_text(self, value, expected):
        assert extract_text(value) == expected


class TestCollectText:
    def test_rich_text_note(self):
        xml = (
            "<omnifocus><task><note><text>"
            "<p><run><lit>First line</lit></run></p>"
            "<p><run><style/><lit>Second </lit></run><run><lit>line</lit></run></p>"
            "</text></note></task></omnifocus>"
        )
        note = parse_document(xml).get("task").get("note")
        assert extract_text(note) is None
        assert collect_text(note) == "First line\nSecond line"

    def test_deep_paragraph_nesting(self):
        note = parse_document(f"<note>{nested_elements('p', 240, 'deep')}</note>")
        assert collect_text(note) == "deep"

    def test_depth_bound(self):
        node = GenericNode(tag="lit", attributes={"lang": "en"}, text="deep")
        for _ in range(MAX_DOCUMENT_DEPTH + 1):
            node = GenericNode(tag="p", children={"p": node})
        with pytest.raises(MarkupCorruptError):
            collect_text(node)

    def test_plain_note_passthrough(self):
        assert collect_text("just text") == "just text"
        assert collect_text(None) is None


class TestAsList:
    def test_as_list(self):
        assert as_list(None) == []
        assert as_list("a") == ["a"]
        assert as_list(["a", "b"]) == ["a", "b"]
