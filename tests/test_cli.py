"""Tests for geminicli.cli — argument parsing and the interactive loop."""

import io

import pytest
from rich.console import Console

from geminicli import cli
from geminicli.core.exceptions import TransportError
from geminicli.core.session import Command


def scripted(*lines):
    """A read_line replacement that replays `lines` then hits EOF."""
    it = iter(lines)

    def read_line(prompt=""):
        try:
            return next(it)
        except StopIteration:
            raise EOFError
    return read_line


@pytest.fixture
def ui():
    return cli.ChatUI(Console(file=io.StringIO(), width=120))


def output(ui):
    return ui.console.file.getvalue()


class TestParser:
    def test_defaults(self):
        args = cli.build_parser().parse_args([])
        assert args.context is None
        assert args.token_limit is None
        assert args.debug is False

    def test_flags(self):
        args = cli.build_parser().parse_args(
            ["--context", "c.md", "--token-limit", "500", "--token-warning", "400", "--hide-welcome"]
        )
        assert args.context == "c.md"
        assert args.token_limit == 500
        assert args.token_warning == 400
        assert args.hide_welcome is True


class TestRunLoop:
    def test_chat_then_eof(self, session, ui, mock_provider):
        code = cli.run_loop(session, ui, scripted("hello", ""))
        assert code == 0
        assert mock_provider.call_count == 1
        assert "Mock model reply" in output(ui)

    def test_menu_exit(self, session, ui, mock_provider):
        assert cli.run_loop(session, ui, scripted("menu", Command.EXIT.value)) == 0
        assert mock_provider.call_count == 0

    def test_menu_unknown_option(self, session, ui):
        cli.run_loop(session, ui, scripted("menu", "42"))
        assert "Unknown option" in output(ui)

    def test_menu_reset(self, session, ui):
        session.send("hello")
        cli.run_loop(session, ui, scripted("menu", "1"))
        assert len(session.history) == 0

    def test_menu_change_api_key(self, session, ui, mock_provider):
        cli.run_loop(session, ui, scripted("menu", "4", "new-key"))
        assert mock_provider.api_key == "new-key"

    def test_menu_change_context(self, session, ui, tmp_path, mock_provider):
        path = tmp_path / "ctx.txt"
        path.write_text("Be brief.")
        cli.run_loop(session, ui, scripted("menu", "2", str(path), "hi"))
        assert mock_provider.last_turns[0].text == "Be brief.\nhi"

    def test_change_context_reprompts_when_too_large(self, session, ui, tmp_path, words):
        big = tmp_path / "big.txt"
        big.write_text(words(95))
        small = tmp_path / "small.txt"
        small.write_text("tiny")
        cli.run_loop(session, ui, scripted("menu", "2", str(big), str(small)))
        assert session.context == "tiny"
        assert "too large" in output(ui)

    def test_menu_delete_log(self, session, ui):
        old = session.conversation_log.name
        session.reset()
        cli.run_loop(session, ui, scripted("menu", "3", old))
        assert session.conversation_log.list_logs() == []

    def test_eviction_notice(self, session, ui, make_provider, words):
        session.provider = make_provider(response=words(30))
        cli.run_loop(session, ui, scripted(words(30), words(30)))
        assert "oldest messages have been removed" in output(ui)

    def test_transport_error_is_fatal(self, session, ui, make_provider):
        session.provider = make_provider(error=TransportError("HTTP 500", status_code=500))
        assert cli.run_loop(session, ui, scripted("hello", "never read")) == 1
        assert "Request failed" in output(ui)

    def test_blocked_reply_keeps_going(self, session, ui, make_provider):
        session.provider = make_provider(response="", finish_reason="SAFETY")
        assert cli.run_loop(session, ui, scripted("hello", "again")) == 0
        assert session.provider.call_count == 2
        assert "Unhandled finish reason: SAFETY" in output(ui)

    def test_log_write_failure(self, session, ui, monkeypatch):
        def fail(*args, **kwargs):
            raise PermissionError("read-only file system")

        monkeypatch.setattr(session.conversation_log, "log_exchange", fail)
        assert cli.run_loop(session, ui, scripted("hello", "never read")) == 1
        assert "Cannot write conversation log" in output(ui)
        assert "Traceback" not in output(ui)

    def test_reset_failure(self, session, ui, monkeypatch):
        def fail(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr(session.conversation_log, "rotate", fail)
        assert cli.run_loop(session, ui, scripted("menu", "1")) == 1
        assert "Cannot write conversation log" in output(ui)


class TestMain:
    def test_bad_env_values_do_not_abort(self, monkeypatch, tmp_path):
        monkeypatch.setenv("API_KEY", "k")
        monkeypatch.setenv("DEBUG", "*")
        monkeypatch.setenv("TRANSPORT", "grpc")
        monkeypatch.setenv("TOKENS_PER_WORD", "0")
        console = Console(file=io.StringIO(), width=200)
        code = cli.main(["--output", str(tmp_path / "out")], read_line=scripted("menu", "5"), console=console)
        assert code == 0

    def test_large_startup_context_warns(self, monkeypatch, tmp_path):
        monkeypatch.setenv("API_KEY", "k")
        monkeypatch.setenv("TOKENS_PER_WORD", "1")
        monkeypatch.setenv("MAX_OUTPUT_TOKENS", "10")
        context = tmp_path / "ctx.md"
        context.write_text(" ".join(["word"] * 50))
        console = Console(file=io.StringIO(), width=200)
        code = cli.main(
            ["--context", str(context), "--token-limit", "100", "--token-warning", "20",
             "--output", str(tmp_path / "out"), "--hide-welcome"],
            read_line=scripted("menu", "5"), console=console,
        )
        assert code == 0
        assert "above the 20 warning limit" in console.file.getvalue()

    def test_missing_api_key(self):
        console = Console(file=io.StringIO())
        assert cli.main([], read_line=scripted(), console=console) == 1
        assert "API_KEY is not set" in console.file.getvalue()

    def test_missing_context_file(self, monkeypatch):
        monkeypatch.setenv("API_KEY", "k")
        console = Console(file=io.StringIO())
        assert cli.main(["--context", "nope.md"], read_line=scripted(), console=console) == 1
        assert "Cannot load context file" in console.file.getvalue()

    def test_starts_and_exits(self, monkeypatch, tmp_path):
        monkeypatch.setenv("API_KEY", "k")
        console = Console(file=io.StringIO(), width=200)
        code = cli.main(["--output", str(tmp_path / "out")], read_line=scripted("menu", "5"), console=console)
        assert code == 0
        assert "Welcome" in console.file.getvalue()
        assert len(list((tmp_path / "out").glob("conversation_*.md"))) == 1
