"""
geminicli — Forget the browser. Chat with Gemini right here.

Usage:
    geminicli
    geminicli --context notes.md --output logs/
    geminicli --token-limit 8000 --token-warning 6000 --debug
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, Optional

from dotenv import load_dotenv
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from geminicli import __version__
from geminicli.core.config import ChatConfig
from geminicli.core.exceptions import ContextTooLargeError, GeminiCLIError, LogFileError, TransportError
from geminicli.core.llm import build_provider
from geminicli.core.logger import ConversationLogger
from geminicli.core.session import COMMAND_LABELS, ChatSession, Command, ExchangeResult, parse_command
from geminicli.core.tokens import WordTokenEstimator
from geminicli.core.validator import ContextCheck

logger = logging.getLogger(__name__)

GITHUB_URL = "https://github.com/benjaminwestern/geminicli"

ReadLine = Callable[[str], str]


class ChatUI:
    """Terminal output on top of a Rich console."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def clear(self):
        self.console.clear()

    def info(self, text):
        self.console.print(f"[dim]{text}[/dim]")

    def success(self, text):
        self.console.print(f"[bold green]{text}[/bold green]")

    def error(self, text):
        self.console.print(f"[bold red]{text}[/bold red]")

    def warning(self, text):
        self.console.print(f"[yellow]{text}[/yellow]")

    def welcome(self, log_path: str):
        self.console.print(Panel(
            "[bold cyan]Welcome![/bold cyan] Forget the browser. Chat with Gemini right here!\n\n"
            "Add context to the conversation with the [bold]--context[/bold] flag.\n"
            f"Your conversation will be logged in a markdown file here: [cyan]{log_path}[/cyan]\n"
            "It might take a few seconds to get a response from the model. Please be patient.\n\n"
            f"[dim]More information: {GITHUB_URL}[/dim]",
            border_style="cyan", padding=(1, 2),
        ))

    def menu(self):
        table = Table(title="Menu", show_header=False)
        table.add_column("#", style="bold", width=3)
        table.add_column("Option")
        for command, label in COMMAND_LABELS.items():
            table.add_row(command.value, label)
        self.console.print(table)

    def reply(self, result: ExchangeResult, model_name: str, total_tokens: int):
        self.console.print(Panel(
            Markdown(result.reply.text),
            title=f"[cyan]{model_name}[/cyan]",
            subtitle=f"[dim]~{total_tokens} tokens in history[/dim]",
            border_style="blue", padding=(0, 1),
        ))
        if result.reply.finish_reason != "STOP":
            self.warning(f"Unhandled finish reason: {result.reply.finish_reason}")
        if result.budget_error:
            self.warning(str(result.budget_error))
            self.warning(
                f"The {len(result.evicted)} oldest messages have been removed from the conversation history."
            )
        elif result.over_warning:
            self.warning("The conversation is getting close to the token limit.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="geminicli",
        description="Chat with Gemini from your terminal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment:
    API_KEY (required), MODEL_TYPE, API_VERSION, TEMPERATURE, TOP_K, TOP_P,
    MAX_OUTPUT_TOKENS, HARASSMENT, HATE_SPEECH, SEXUALLY_EXPLICIT, DANGEROUS_CONTENT
        """,
    )
    parser.add_argument("--context", type=str, default=None, help="Path to the context file")
    parser.add_argument("--output", type=str, default=None, help="Directory for the conversation logs")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    parser.add_argument("--hide-welcome", action="store_true", help="Hide welcome message")
    parser.add_argument("--token-limit", type=int, default=None, help="Max tokens for the conversation history (default 30720)")
    parser.add_argument("--token-warning", type=int, default=None, help="Warning for the conversation history (default 25000)")
    parser.add_argument("--transport", choices=["rest", "litellm"], default=None, help="Backend used to reach the model")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def load_context_file(path: Optional[str]) -> str:
    if not path:
        return ""
    return Path(path).expanduser().read_text(encoding="utf-8")


def warn_if_large_context(ui: ChatUI, check: ContextCheck) -> None:
    if check.over_warning:
        ui.warning(f"Context is ~{check.estimated_tokens} tokens, above the {check.warning_limit} warning limit.")


def prompt_for_context(session: ChatSession, ui: ChatUI, read_line: ReadLine) -> bool:
    """
    Ask for context file paths until one fits the budget.
    An empty answer keeps the current context. Returns True if it changed.
    """
    limit = session.budget.hard_limit
    while True:
        path = read_line(f"Enter the path to the context file (max ~{limit} tokens): ").strip()
        if not path:
            ui.info("Context unchanged.")
            return False
        try:
            check = session.set_context(load_context_file(path))
        except OSError as e:
            ui.error(f"Cannot load context file: {e}")
            continue
        except ContextTooLargeError as e:
            ui.error(str(e))
            continue
        warn_if_large_context(ui, check)
        ui.success("Context changed.")
        return True


# ─── Menu commands ────────────────────────────────────────────────

def _reset_chat(session: ChatSession, ui: ChatUI, read_line: ReadLine) -> bool:
    ui.clear()
    ui.info("Resetting chat...")
    path = session.reset()
    ui.success(f"Chat reset. Logging to {path}")
    return True


def _change_context(session: ChatSession, ui: ChatUI, read_line: ReadLine) -> bool:
    ui.clear()
    ui.info("Change context...")
    prompt_for_context(session, ui, read_line)
    return True


def _delete_log(session: ChatSession, ui: ChatUI, read_line: ReadLine) -> bool:
    ui.clear()
    logs = session.conversation_log.list_logs()
    if not logs:
        ui.info("No other conversation logs found.")
        return True
    ui.info("Note: the current conversation log can't be deleted.")
    for name in logs:
        ui.console.print(f"  {name}")
    name = read_line("Enter the name of the file you want to delete: ").strip()
    if not name:
        return True
    try:
        session.conversation_log.delete_log(name)
    except (LogFileError, OSError) as e:
        ui.error(str(e))
        return True
    ui.success("Conversation log deleted.")
    return True


def _change_api_key(session: ChatSession, ui: ChatUI, read_line: ReadLine) -> bool:
    ui.clear()
    key = read_line("Enter the new API key: ").strip()
    if not key:
        ui.info("API key unchanged.")
        return True
    session.provider.set_api_key(key)
    ui.success("API key changed.")
    return True


def _exit(session: ChatSession, ui: ChatUI, read_line: ReadLine) -> bool:
    ui.info("Exiting...")
    return False


COMMAND_HANDLERS: Dict[Command, Callable[[ChatSession, ChatUI, ReadLine], bool]] = {
    Command.RESET_CHAT: _reset_chat,
    Command.CHANGE_CONTEXT: _change_context,
    Command.DELETE_LOG: _delete_log,
    Command.CHANGE_API_KEY: _change_api_key,
    Command.EXIT: _exit,
}


def run_loop(session: ChatSession, ui: ChatUI, read_line: ReadLine, model_name: str = "Gemini") -> int:
    """Read-eval-print loop. Returns the process exit code."""
    while True:
        try:
            text = read_line("Enter your message or type 'menu' to see the options: ").strip()
        except (EOFError, KeyboardInterrupt):
            ui.info("\nExiting...")
            return 0

        if not text:
            continue

        try:
            if text == "menu":
                ui.menu()
                command = parse_command(read_line("Choose an option: "))
                if command is None:
                    ui.warning("Unknown option.")
                    continue
                if not COMMAND_HANDLERS[command](session, ui, read_line):
                    return 0
                continue

            with ui.console.status("[bold green]Sending request to Gemini...", spinner="dots"):
                result = session.send(text)
        except (EOFError, KeyboardInterrupt):
            ui.info("\nExiting...")
            return 0
        except TransportError as e:
            logger.error(f"Request failed: {e.details}")
            ui.error(f"Request failed: {e}")
            return 1
        except GeminiCLIError as e:
            ui.error(str(e))
            return 1
        except OSError as e:
            logger.error(f"Conversation log write failed: {e}")
            ui.error(f"Cannot write conversation log: {e}")
            return 1

        ui.reply(result, model_name, session.history.total_tokens())


def main(argv=None, read_line: ReadLine = input, console: Optional[Console] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    # env vars → .env file → CLI args override
    overrides = {}
    if args.context is not None:
        overrides["context_file"] = args.context
    if args.output is not None:
        overrides["output_dir"] = args.output
    if args.debug:
        overrides["debug"] = True
    if args.hide_welcome:
        overrides["hide_welcome"] = True
    if args.token_limit is not None:
        overrides["token_limit"] = args.token_limit
    if args.token_warning is not None:
        overrides["token_warning"] = args.token_warning
    if args.transport is not None:
        overrides["transport"] = args.transport

    config = ChatConfig(**overrides)
    config.setup_logging()
    ui = ChatUI(console)

    if not config.api_key:
        ui.error("API_KEY is not set")
        return 1

    try:
        context = load_context_file(config.context_file)
    except OSError as e:
        ui.error(f"Cannot load context file: {e}")
        return 1

    try:
        conversation_log = ConversationLogger(config.output_dir)
    except OSError as e:
        ui.error(f"Cannot create markdown file: {e}")
        return 1

    session = ChatSession(
        budget=config.token_budget(),
        generation=config.generation_settings(),
        safety_settings=config.safety_settings(),
        provider=build_provider(config),
        conversation_log=conversation_log,
        estimator=WordTokenEstimator(config.tokens_per_word),
        evict_until_fits=config.evict_until_fits,
    )

    try:
        if context:
            try:
                warn_if_large_context(ui, session.set_context(context))
            except ContextTooLargeError as e:
                ui.error(str(e))
                prompt_for_context(session, ui, read_line)
        if not config.hide_welcome:
            ui.welcome(conversation_log.path)
    except (EOFError, KeyboardInterrupt):
        return 0

    return run_loop(session, ui, read_line, model_name=config.model_type)


def cli():
    sys.exit(main())


if __name__ == "__main__":
    cli()
