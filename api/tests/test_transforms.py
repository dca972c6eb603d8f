import pytest

from core import errors
from editor import document, transforms
from editor.document import Mark, Node, paragraph, text
from editor.transforms import Selection


def make_doc(html: str = "<p>hello world</p>") -> Node:
    return document.from_html(html)


def test_toggle_mark_applies_then_removes():
    doc = make_doc()
    transforms.toggle_mark(doc, Selection(0, 0, 5), Mark("bold"))
    assert document.to_html(doc) == "<p><strong>hello</strong> world</p>"

    transforms.toggle_mark(doc, Selection(0, 0, 5), Mark("bold"))
    assert document.to_html(doc) == "<p>hello world</p>"


def test_toggle_mark_on_partially_marked_range_marks_all_of_it():
    doc = make_doc("<p><em>hel</em>lo world</p>")
    transforms.toggle_mark(doc, Selection(0, 0, 5), Mark("italic"))
    assert document.to_html(doc) == "<p><em>hello</em> world</p>"


def test_toggle_mark_inside_code_block_is_rejected():
    doc = make_doc("<pre><code>x = 1</code></pre>")
    with pytest.raises(errors.ValidationError):
        transforms.toggle_mark(doc, Selection(0, 0, 1), Mark("bold"))


def test_selection_outside_document_is_rejected():
    with pytest.raises(errors.ValidationError):
        transforms.toggle_mark(make_doc(), Selection(3, 0, 1), Mark("bold"))


def test_insert_text_inherits_marks_before_cursor():
    doc = Node("doc", content=[paragraph(text("ab", Mark("bold")))])
    selection = transforms.insert_text(doc, Selection(0, 2, 2), "c")
    assert document.to_html(doc) == "<p><strong>abc</strong></p>"
    assert selection == Selection(0, 3, 3)


def test_insert_text_replaces_selection():
    doc = make_doc()
    transforms.insert_text(doc, Selection(0, 6, 11), "there")
    assert document.to_html(doc) == "<p>hello there</p>"


def test_heading_toggles_back_to_paragraph():
    doc = make_doc()
    transforms.toggle_textblock(doc, Selection(0), "heading", {"level": 2})
    assert document.to_html(doc) == "<h2>hello world</h2>"
    transforms.toggle_textblock(doc, Selection(0), "heading", {"level": 2})
    assert document.to_html(doc) == "<p>hello world</p>"


def test_code_block_strips_marks():
    doc = make_doc("<p><strong>x</strong> = 1</p>")
    transforms.toggle_textblock(doc, Selection(0), "code_block")
    assert document.to_html(doc) == "<pre><code>x = 1</code></pre>"


def test_bullet_list_wraps_and_lifts():
    doc = make_doc()
    transforms.toggle_list(doc, Selection(0), "bullet_list")
    assert document.to_html(doc) == "<ul><li><p>hello world</p></li></ul>"

    transforms.toggle_list(doc, Selection(0), "bullet_list")
    assert document.to_html(doc) == "<p>hello world</p>"


def test_list_type_switches_in_place():
    doc = make_doc("<ul><li><p>one</p></li><li><p>two</p></li></ul>")
    transforms.toggle_list(doc, Selection(1), "ordered_list")
    assert document.to_html(doc) == "<ol><li><p>one</p></li><li><p>two</p></li></ol>"


def test_lifting_middle_item_splits_the_list():
    doc = make_doc("<ul><li><p>a</p></li><li><p>b</p></li><li><p>c</p></li></ul>")
    transforms.toggle_list(doc, Selection(1), "bullet_list")
    assert document.to_html(doc) == "<ul><li><p>a</p></li></ul><p>b</p><ul><li><p>c</p></li></ul>"


def test_blockquote_wraps_and_unwraps():
    doc = make_doc()
    transforms.toggle_blockquote(doc, Selection(0))
    assert document.to_html(doc) == "<blockquote><p>hello world</p></blockquote>"
    transforms.toggle_blockquote(doc, Selection(0))
    assert document.to_html(doc) == "<p>hello world</p>"


def test_split_block_at_cursor():
    doc = make_doc()
    selection = transforms.split_block(doc, Selection(0, 5, 5))
    assert document.to_html(doc) == "<p>hello</p><p> world</p>"
    assert selection == Selection(1, 0, 0)


def test_split_inside_list_item_creates_new_item():
    doc = make_doc("<ul><li><p>ab</p></li></ul>")
    transforms.split_block(doc, Selection(0, 1, 1))
    assert document.to_html(doc) == "<ul><li><p>a</p></li><li><p>b</p></li></ul>"


def test_split_at_end_of_heading_continues_with_paragraph():
    doc = make_doc("<h1>Title</h1>")
    transforms.split_block(doc, Selection(0, 5, 5))
    assert document.to_html(doc) == "<h1>Title</h1><p></p>"


def test_horizontal_rule_splits_block_at_cursor():
    doc = make_doc()
    selection = transforms.insert_block_at_cursor(doc, Selection(0, 5, 5), Node("horizontal_rule"))
    assert document.to_html(doc) == "<p>hello</p><hr><p> world</p>"
    assert selection == Selection(1, 0, 0)


def test_block_at_start_of_block_drops_empty_head():
    doc = make_doc()
    transforms.insert_block_at_cursor(doc, Selection(0, 0, 0), Node("image", attrs={"src": "/a.png"}))
    assert document.to_html(doc) == '<img src="/a.png"><p>hello world</p>'


def test_link_set_and_removed():
    doc = make_doc()
    transforms.set_link(doc, Selection(0, 0, 5), "https://example.com")
    assert '<a href="https://example.com"' in document.to_html(doc)

    transforms.set_link(doc, Selection(0, 0, 5), "https://example.com")
    assert document.to_html(doc) == "<p>hello world</p>"


def test_link_without_href_unlinks():
    doc = make_doc('<p><a href="/x">hello</a> world</p>')
    transforms.set_link(doc, Selection(0, 0, 5), None)
    assert document.to_html(doc) == "<p>hello world</p>"
