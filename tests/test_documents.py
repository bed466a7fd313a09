"""
Test cases for document storage and markdown rendering.
"""

import sqlite3
from datetime import datetime, timezone

import pytest

from app.documents import DocumentStore, MarkdownRenderer, generate_short_id


@pytest.fixture()
def store(tmp_path):
    return DocumentStore(
        tmp_path / "publisher.db",
        clock=lambda: datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)
    )


class TestDocumentStore:
    """Test document persistence."""

    def test_create_and_get(self, store):
        created = store.create("abcd1234", "Notes", "# Notes")

        fetched = store.get("abcd1234")

        assert fetched == created
        assert fetched.created_at == datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)

    def test_get_missing(self, store):
        assert store.get("missing1") is None

    def test_duplicate_id_rejected(self, store):
        store.create("abcd1234", None, "one")

        with pytest.raises(sqlite3.IntegrityError):
            store.create("abcd1234", None, "two")

    def test_generate_short_id(self):
        ids = {generate_short_id() for _ in range(100)}

        assert len(ids) == 100
        assert all(len(doc_id) == 8 for doc_id in ids)


class TestMarkdownRenderer:
    """Test markdown to HTML conversion."""

    def setup_method(self):
        self.renderer = MarkdownRenderer()

    def test_headings_and_lists(self):
        html = self.renderer.render("# Title\n\n- one\n- two")

        assert "Title</h1>" in html
        assert "<li>one</li>" in html

    def test_fenced_code_highlighted(self):
        html = self.renderer.render("```python\nprint('hi')\n```")

        assert 'class="highlight"' in html

    def test_tables(self):
        html = self.renderer.render("| a | b |\n|---|---|\n| 1 | 2 |")

        assert "<table>" in html
        assert "<td>1</td>" in html

    def test_raw_html_escaped(self):
        html = self.renderer.render('<div onclick="steal()">hi</div>\n\ntext <em>inline</em>')

        assert "<div" not in html
        assert "<em>inline</em>" not in html
        assert "&lt;em&gt;" in html
