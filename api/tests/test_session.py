import pytest

from core import errors
from editor import document
from editor.session import EditorMode, EditorSession
from editor.transforms import Selection

OWNER = "11111111-1111-1111-1111-111111111111"


def loaded(html: str) -> EditorSession:
    return EditorSession.for_existing_post(OWNER, "post-1", html)


def test_new_session_starts_empty_in_structured_view():
    session = EditorSession.for_new_post(OWNER)
    assert session.mode == EditorMode.STRUCTURED
    assert session.canonical == ""
    assert session.document == document.empty_document()


def test_loaded_session_keeps_stored_html_as_canonical():
    session = loaded("<p>Hello <strong>bold</strong></p>")
    assert session.canonical == "<p>Hello <strong>bold</strong></p>"
    assert document.plain_text(session.document) == "Hello bold"


def test_markdown_view_is_seeded_with_plain_text_only():
    session = loaded("<p>Hello <strong>bold</strong></p>")
    session.switch_mode("markdown")
    assert session.markdown_text == "Hello bold"
    assert "**" not in session.markdown_text


def test_markdown_edits_survive_a_round_trip_through_structured_view():
    session = loaded("<p>Hello <strong>bold</strong></p>")
    session.switch_mode(EditorMode.MARKDOWN)
    session.edit_text("# My own **markdown**")

    session.switch_mode(EditorMode.STRUCTURED)
    session.switch_mode(EditorMode.MARKDOWN)

    assert session.markdown_text == "# My own **markdown**"


def test_canonical_is_last_emitted_value_whatever_the_view():
    session = loaded("<p>Hello</p>")
    session.switch_mode(EditorMode.MARKDOWN)
    session.edit_text("plain words")
    session.switch_mode(EditorMode.STRUCTURED)

    # The structured view still shows the old document.
    assert session.active_text() == "<p>Hello</p>"
    assert session.canonical == "plain words"


def test_html_view_is_seeded_from_document_until_edited():
    session = loaded("<p>Hello</p>")
    session.switch_mode(EditorMode.HTML)
    assert session.html_text == "<p>Hello</p>"

    session.edit_text("<p>Changed</p>")
    session.switch_mode(EditorMode.STRUCTURED)
    session.run_command("insert_text", selection=Selection(0, 5, 5), text="!")
    session.switch_mode(EditorMode.HTML)

    assert session.html_text == "<p>Changed</p>"
    assert session.canonical == "<p>Hello!</p>"


def test_structured_commands_emit_serialized_html():
    session = EditorSession.for_new_post(OWNER)
    seen = []
    session.on_change(seen.append)

    session.run_command("insert_text", selection=Selection(0, 0, 0), text="Hi there")
    session.run_command("bold", selection=Selection(0, 0, 2))

    assert seen == ["<p>Hi there</p>", "<p><strong>Hi</strong> there</p>"]
    assert session.canonical == "<p><strong>Hi</strong> there</p>"


def test_unsubscribed_listener_is_not_called():
    session = EditorSession.for_new_post(OWNER)
    seen = []
    unsubscribe = session.on_change(seen.append)
    unsubscribe()
    session.run_command("insert_text", selection=Selection(0, 0, 0), text="x")
    assert seen == []


def test_mark_on_empty_selection_applies_to_next_insert():
    session = EditorSession.for_new_post(OWNER)
    session.run_command("bold", selection=Selection(0, 0, 0))
    assert session.canonical == ""

    session.run_command("insert_text", selection=Selection(0, 0, 0), text="x")
    assert session.canonical == "<p><strong>x</strong></p>"


def test_undo_and_redo():
    session = EditorSession.for_new_post(OWNER)
    session.run_command("insert_text", selection=Selection(0, 0, 0), text="Hi")

    session.run_command("undo")
    assert session.canonical == "<p></p>"

    session.run_command("redo")
    assert session.canonical == "<p>Hi</p>"


def test_markdown_toolbar_wraps_selection():
    session = EditorSession.for_new_post(OWNER)
    session.switch_mode(EditorMode.MARKDOWN)
    session.edit_text("hello world")

    result = session.run_command("bold", start=0, end=5)

    assert session.canonical == "**hello** world"
    assert result == {"selection_start": 2, "selection_end": 7}


def test_table_is_an_html_view_command_only():
    session = EditorSession.for_new_post(OWNER)
    with pytest.raises(errors.ValidationError):
        session.run_command("table")

    session.switch_mode(EditorMode.HTML)
    session.run_command("table", start=0, end=0)
    assert session.canonical == "<table></table>"


def test_text_edits_are_rejected_in_structured_view():
    session = EditorSession.for_new_post(OWNER)
    with pytest.raises(errors.ValidationError):
        session.edit_text("nope")


def test_images_need_structured_view():
    session = EditorSession.for_new_post(OWNER)
    session.switch_mode(EditorMode.MARKDOWN)
    with pytest.raises(errors.ValidationError):
        session.insert_image("https://cdn.test/a.png")


def test_image_goes_in_at_cursor():
    session = loaded("<p>hello world</p>")
    session.select(Selection(0, 5, 5))
    session.insert_image("https://cdn.test/a.png", alt="a")
    assert session.canonical == '<p>hello</p><img src="https://cdn.test/a.png" alt="a"><p> world</p>'


def test_markdown_preview_is_rendered_and_sanitized():
    session = EditorSession.for_new_post(OWNER)
    session.switch_mode(EditorMode.MARKDOWN)
    session.edit_text("**hi** <script>alert(1)</script>")

    html = session.preview()

    assert "<strong>hi</strong>" in html
    assert "<script" not in html
    # Preview never feeds back into the saved content.
    assert session.canonical == "**hi** <script>alert(1)</script>"


def test_second_save_while_one_is_in_flight_is_refused():
    session = EditorSession.for_new_post(OWNER)
    session.begin_save()
    with pytest.raises(errors.ConflictError):
        session.begin_save()

    session.end_save("post-9")
    assert session.post_id == "post-9"
    session.begin_save()


def test_loaded_session_hydrates_from_stored_blob(monkeypatch):
    original = EditorSession.for_new_post(OWNER)
    original.run_command("insert_text", selection=Selection(0, 0, 0), text="Hi there")
    original.run_command("bold", selection=Selection(0, 0, 2))
    blob = original.structured_blob()

    def refuse(source):
        raise AssertionError("stored HTML should not be re-parsed")

    monkeypatch.setattr(document, "from_html", refuse)
    session = EditorSession.for_existing_post(OWNER, "post-1", original.canonical, blob)

    assert session.document == original.document
    assert session.canonical == "<p><strong>Hi</strong> there</p>"


def test_stale_or_foreign_blob_falls_back_to_html():
    stale = document.to_blob(document.empty_document())
    session = EditorSession.for_existing_post(OWNER, "post-1", "<p>Edited as HTML</p>", stale)
    assert document.plain_text(session.document) == "Edited as HTML"

    foreign = {"type": "doc", "content": []}
    session = EditorSession.for_existing_post(OWNER, "post-1", "<p>Plain</p>", foreign)
    assert document.plain_text(session.document) == "Plain"
