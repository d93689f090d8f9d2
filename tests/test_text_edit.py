"""
Tests for text edit sessions
"""
from conftest import P
from snapmark.editor.text_edit import TextEditSession


class TestTextEditSession:
    """Tests for TextEditSession"""

    def test_new_session(self):
        """Test a session without target creates a new label"""
        session = TextEditSession(position=P(1, 2))

        assert session.is_new
        assert session.draft == ""

    def test_existing_target(self):
        """Test a session with a target edits an existing label"""
        session = TextEditSession(position=P(1, 2), target_index=3, draft="old")

        assert not session.is_new
        assert session.committed_text == "old"

    def test_insert_strips_newlines(self):
        """Test labels stay single-line"""
        session = TextEditSession(position=P(0, 0))
        session.insert("a\nb\r\nc")

        assert session.draft == "abc"

    def test_backspace_on_empty(self):
        """Test backspace on an empty draft is harmless"""
        session = TextEditSession(position=P(0, 0))
        session.backspace()

        assert session.draft == ""

    def test_committed_text_trimmed(self):
        """Test surrounding whitespace is not committed"""
        session = TextEditSession(position=P(0, 0))
        session.set_text("  spaced out  ")

        assert session.committed_text == "spaced out"
        assert session.draft == "  spaced out  "
