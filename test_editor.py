"""
Tests for the editor contracts: caret-line preview and commit on Enter.
"""

from calcnotes.editor import Preview, commit, preview
from calcnotes.engine import NotebookEngine


def test_preview_for_caret_line():
    engine = NotebookEngine()
    text = "x = 4\nx * 2"
    engine.reprocess(text)

    assert preview(engine, text, len(text)) == Preview(1, 8)
    assert preview(engine, text, len(text)).to_dict() == {"line": 1, "result": 8}


def test_no_preview_for_committed_or_plain_lines():
    engine = NotebookEngine()
    text = "1 + 1 = 2\nhello\nx = 3"
    engine.reprocess(text)

    assert preview(engine, text, 3) is None
    assert preview(engine, text, 12) is None
    assert preview(engine, text, len(text)) is None


def test_commit_last_line_opens_a_new_line():
    engine = NotebookEngine()
    outcome = commit(engine, "1+1", 3)

    assert outcome.text == "1+1 = 2\n"
    assert outcome.cursor == 8
    assert outcome.results[0].result == 2
    assert outcome.results[0].expression == "1+1"


def test_commit_middle_line():
    engine = NotebookEngine()
    text = "10\n2*3\nfoo"
    engine.reprocess(text)
    outcome = commit(engine, text, 6)

    assert outcome.text == "10\n2*3 = 6\nfoo"
    assert outcome.cursor == 11


def test_commit_trims_the_line():
    engine = NotebookEngine()
    outcome = commit(engine, "   7 * 6   ", 4)

    assert outcome.text == "7 * 6 = 42\n"


def test_commit_uses_earlier_results():
    engine = NotebookEngine()
    text = "2+3 = 5\nans*2"
    engine.reprocess(text)
    outcome = commit(engine, text, len(text))

    assert outcome.text == "2+3 = 5\nans*2 = 10\n"
    assert outcome.results[1].result == 10


def test_commit_formats_decimals():
    engine = NotebookEngine()
    outcome = commit(engine, "10 / 3", 6)

    assert outcome.text == "10 / 3 = 3.33\n"


def test_commit_refuses_non_expressions():
    engine = NotebookEngine()

    assert commit(engine, "hello", 5) is None
    assert commit(engine, "42", 2) is None
    assert commit(engine, "1 + 1 = 2", 9) is None
    assert commit(engine, "x = 5", 5) is None
    assert commit(engine, "", 0) is None


def test_committed_text_is_stable():
    engine = NotebookEngine()
    outcome = commit(engine, "1/3", 3)
    again = engine.reprocess(outcome.text)

    assert again.updated_text == outcome.text
    assert again.results[0].result == 0.33
