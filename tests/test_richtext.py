import json

from noter.services.richtext import is_json_data, to_plain_text


def test_is_json_data():
    assert is_json_data('[{"type": "paragraph"}]')
    assert is_json_data("42")
    assert not is_json_data("just words")
    assert not is_json_data("")


def test_plain_text_passes_through():
    assert to_plain_text("milk, eggs") == "milk, eggs"
    assert to_plain_text("") == ""
    assert to_plain_text("42") == "42"


def test_deeply_nested_input_is_plain_text():
    content = "[" * 100000
    assert not is_json_data(content)
    assert to_plain_text(content) == content


def test_deeply_nested_document_is_flattened():
    node = {"text": "deep"}
    for _ in range(300):
        node = {"type": "div", "children": [node]}
    assert to_plain_text(json.dumps([node])) == "deep"


def test_document_to_lines():
    document = [
        {"type": "heading", "children": [{"text": "Title", "bold": True}]},
        {
            "type": "bulleted-list",
            "children": [
                {"type": "list-item", "children": [{"text": "one "}, {"text": "two"}]},
            ],
        },
        {"type": "paragraph", "children": [{"text": ""}]},
    ]
    assert to_plain_text(json.dumps(document)) == "Title\none two\n"
