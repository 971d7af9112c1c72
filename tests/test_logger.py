"""Tests for geminicli.core.logger — the markdown conversation log."""

import os

import pytest
from geminicli.core.exceptions import LogFileError
from geminicli.core.logger import ConversationLogger
from geminicli.core.types import Role, Turn


class TestConversationLogger:
    def test_creates_timestamped_file(self, conversation_log):
        assert os.path.exists(conversation_log.path)
        assert conversation_log.name.startswith("conversation_")
        assert conversation_log.name.endswith(".md")

    def test_log_exchange_format(self, conversation_log):
        conversation_log.log_exchange(Turn(role=Role.USER, text="hi"), Turn(role=Role.MODEL, text="hello"))
        conversation_log.log_exchange(Turn(role=Role.USER, text="bye"), Turn(role=Role.MODEL, text="ciao"))
        with open(conversation_log.path, encoding="utf-8") as f:
            assert f.read() == "**User:** hi\n**Model:** hello\n\n**User:** bye\n**Model:** ciao\n\n"

    def test_rotate_makes_new_file(self, conversation_log):
        first = conversation_log.path
        second = conversation_log.rotate()
        assert first != second
        assert os.path.exists(first) and os.path.exists(second)

    def test_list_excludes_current(self, conversation_log):
        old = conversation_log.name
        conversation_log.rotate()
        assert conversation_log.list_logs() == [old]

    def test_list_ignores_other_files(self, conversation_log):
        with open(os.path.join(conversation_log.output_dir, "notes.md"), "w") as f:
            f.write("x")
        assert conversation_log.list_logs() == []

    def test_delete_old_log(self, conversation_log):
        old = conversation_log.name
        conversation_log.rotate()
        conversation_log.delete_log(old)
        assert conversation_log.list_logs() == []

    def test_cannot_delete_current(self, conversation_log):
        with pytest.raises(LogFileError):
            conversation_log.delete_log(conversation_log.name)
        assert os.path.exists(conversation_log.path)

    def test_cannot_delete_unknown(self, conversation_log):
        with pytest.raises(LogFileError):
            conversation_log.delete_log("../../etc/passwd")
