"""Interactive pill builder, powered by prompt_toolkit."""

from __future__ import annotations

import os
import re
import sys
import traceback
from typing import Callable, Dict, List, Optional, Tuple

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.shortcuts import clear

from .catalog import DEFAULT_CATALOG, Catalog, CatalogError
from .checker import CheckBoard
from .codegen import generate
from .evaluators import Evaluator
from .expect import next_expected
from .expression import Expression, ExpressionError
from .repl_highlight import PillLexer
from .token_types import Category, PlacedToken
from .utils import ENV_PREFIX, debug_enabled

# Zero-width and invisible characters to strip from input.
_INVISIBLE_RE = re.compile("[\u200b\u200c\u200d\ufeff\u00a0\r]")

# Slash commands: name => (description, argument_hint).
_SLASH_CMDS = {
    "/help": ("Show commands", ""),
    "/pills": ("List the pill catalog", "[category]"),
    "/lines": ("Show placed pills with their positions", ""),
    "/line": ("Switch the current line", "N"),
    "/newline": ("Add a line and switch to it", ""),
    "/dropline": ("Remove a line", "N"),
    "/remove": ("Remove a placed pill", "LINE.POS"),
    "/move": ("Move a placed pill to another line", "LINE.POS LINE [POS]"),
    "/undo": ("Remove the last placed pill", ""),
    "/clear": ("Clear everything, or one line", "[N]"),
    "/code": ("Show the generated Racket code", ""),
    "/check": ("Check syntax and evaluate", ""),
    "/clear-screen": ("Clear the terminal screen", ""),
    "/py-traceback": ("Toggle Python traceback on errors", "[on|off]"),
}


class CommandError(Exception):
    """Bad shell command or argument"""
    pass


def _normalize(text: str) -> str:
    """Strip invisible characters from input."""
    return _INVISIBLE_RE.sub("", text)


def _parse_index(raw: str, what: str) -> int:
    """1-based user number -> 0-based index."""
    try:
        value = int(raw)
    except ValueError:
        raise CommandError(f"{what} must be a number, got '{raw}'") from None
    if value < 1:
        raise CommandError(f"{what} must be at least 1")
    return value - 1


class BuilderSession:
    """Expression being built in the shell, plus the current line cursor."""

    def __init__(self, catalog: Catalog = DEFAULT_CATALOG, evaluator: Optional[Evaluator] = None):
        self.catalog = catalog
        self.evaluator = evaluator
        self.expression = Expression()
        self.current = 0
        self.placed: List[str] = []
        self.board = CheckBoard()
        self.commands: Dict[str, Callable[[List[str]], str]] = {
            "/help": self.cmd_help,
            "/pills": self.cmd_pills,
            "/lines": self.cmd_lines,
            "/line": self.cmd_line,
            "/newline": self.cmd_newline,
            "/dropline": self.cmd_dropline,
            "/remove": self.cmd_remove,
            "/move": self.cmd_move,
            "/undo": self.cmd_undo,
            "/clear": self.cmd_clear,
            "/code": self.cmd_code,
            "/check": self.cmd_check,
        }

    # ========================================================================
    # Input handling
    # ========================================================================

    def handle(self, text: str) -> str:
        """Apply one line of input and return what to print."""
        text = _normalize(text).strip()
        if not text:
            return ""

        if text.startswith("/"):
            cmd, *args = text.split()
            handler = self.commands.get(cmd)
            if handler is None:
                raise CommandError(f"Unknown command: {cmd}")
            return handler(args)

        return self.drop(text.split())

    def drop(self, ids: List[str]) -> str:
        unknown = [spec_id for spec_id in ids if spec_id not in self.catalog]
        if unknown:
            raise CommandError("Unknown pill: " + ", ".join(unknown) + " (see /pills)")

        for spec_id in ids:
            token = self.expression.place(self.current, self.catalog[spec_id])
            self.placed.append(token.instance_id)

        return self.status()

    def status(self) -> str:
        code = generate(self.expression) or "; drop pills to see code here"
        line = self.expression.line(self.current)
        expected = next_expected(line)
        hint = expected.value if expected is not None else "nothing in particular"
        return f"{code}\n-- line {self.current + 1}, next: {hint}"

    def _token_at(self, ref: str) -> PlacedToken:
        line_raw, sep, pos_raw = ref.partition(".")
        if not sep:
            raise CommandError(f"Expected LINE.POS, got '{ref}'")

        line_index = _parse_index(line_raw, "Line")
        pos = _parse_index(pos_raw, "Position")
        line = self.expression.line(line_index)

        if pos >= len(line):
            raise CommandError(f"Line {line_index + 1} has no pill at position {pos + 1}")
        return line[pos]

    def _forget(self, instance_ids: List[str]) -> None:
        gone = set(instance_ids)
        self.placed = [iid for iid in self.placed if iid not in gone]

    # ========================================================================
    # Commands
    # ========================================================================

    def cmd_help(self, args: List[str]) -> str:
        rows = [f"  {cmd} {hint}".rstrip().ljust(28) + desc for cmd, (desc, hint) in _SLASH_CMDS.items()]
        return "Type pill ids to drop them on the current line.\n" + "\n".join(rows)

    def cmd_pills(self, args: List[str]) -> str:
        if args:
            try:
                categories = [Category.parse(args[0])]
            except ValueError as exc:
                raise CommandError(str(exc)) from None
        else:
            categories = list(Category)

        out = []
        for category in categories:
            specs = self.catalog.in_category(category)
            if specs:
                out.append(f"{category.value}: " + "  ".join(f"{s.id}={s.label}" if s.id != s.label else s.id for s in specs))
        return "\n".join(out)

    def cmd_lines(self, args: List[str]) -> str:
        out = []
        for i, line in enumerate(self.expression):
            marker = ">" if i == self.current else " "
            pills = "  ".join(f"{i + 1}.{j + 1}:{tok.label}" for j, tok in enumerate(line))
            out.append(f"{marker} {i + 1} | {pills}")
        return "\n".join(out)

    def cmd_line(self, args: List[str]) -> str:
        if len(args) != 1:
            raise CommandError("Usage: /line N")
        index = _parse_index(args[0], "Line")
        self.expression.line(index)
        self.current = index
        return self.status()

    def cmd_newline(self, args: List[str]) -> str:
        self.current = self.expression.add_line()
        return self.status()

    def cmd_dropline(self, args: List[str]) -> str:
        index = _parse_index(args[0], "Line") if args else self.current
        removed = self.expression.remove_line(index)
        self._forget([tok.instance_id for tok in removed])
        if self.current >= len(self.expression) or self.current > index:
            self.current = max(self.current - 1, 0)
        return self.status()

    def cmd_remove(self, args: List[str]) -> str:
        if len(args) != 1:
            raise CommandError("Usage: /remove LINE.POS")
        token = self.expression.remove(self._token_at(args[0]).instance_id)
        self._forget([token.instance_id])
        return self.status()

    def cmd_move(self, args: List[str]) -> str:
        if len(args) not in (2, 3):
            raise CommandError("Usage: /move LINE.POS LINE [POS]")
        token = self._token_at(args[0])
        target = _parse_index(args[1], "Line")
        position = _parse_index(args[2], "Position") if len(args) == 3 else None
        self.expression.move(token.instance_id, target, position)
        return self.status()

    def cmd_undo(self, args: List[str]) -> str:
        if not self.placed:
            raise CommandError("Nothing to undo")
        self.expression.remove(self.placed.pop())
        return self.status()

    def cmd_clear(self, args: List[str]) -> str:
        if args:
            index = _parse_index(args[0], "Line")
            self._forget([tok.instance_id for tok in self.expression.line(index)])
            self.expression.clear_line(index)
        else:
            self.expression.clear()
            self.placed.clear()
            self.current = 0
        return self.status()

    def cmd_code(self, args: List[str]) -> str:
        return generate(self.expression)

    def cmd_check(self, args: List[str]) -> str:
        result = self.board.run(generate(self.expression), self.evaluator, self.catalog)
        title = "Syntax OK!" if result.is_valid else "Syntax Error"
        out = f"{title} {result.message}"
        if result.simulated_evaluation is not None and result.simulated_evaluation != result.message:
            out += f"\n=> {result.simulated_evaluation}"
        return out


class _BuilderCompleter(Completer):
    """Autocomplete pill ids and slash commands."""

    def __init__(self, catalog: Catalog):
        self.catalog = catalog

    def get_completions(self, document, complete_event):
        word = document.get_word_before_cursor(WORD=True)
        text = document.text_before_cursor

        if text.startswith("/") and " " not in text:
            for cmd, (desc, hint) in _SLASH_CMDS.items():
                if cmd.startswith(text):
                    yield Completion(cmd, start_position=-len(text), display_meta=desc)
            return

        if text.startswith("/"):
            return

        for spec in self.catalog:
            if spec.id.startswith(word):
                yield Completion(
                    spec.id,
                    start_position=-len(word),
                    display_meta=f"{spec.category.value} {spec.label}",
                )


def _handle_local(text: str) -> Tuple[bool, str]:
    """Shell-only commands that do not touch the expression."""
    stripped = text.strip()
    parts = stripped.split(None, 1)
    cmd = parts[0] if parts else ""
    arg = parts[1] if len(parts) > 1 else ""

    if cmd == "/clear-screen":
        clear()
        return True, ""

    if cmd == "/py-traceback":
        var = ENV_PREFIX + "DEBUG"
        if arg.lower() in ("on", "1", "true", "yes"):
            os.environ[var] = "1"
        elif arg.lower() in ("off", "0", "false", "no"):
            os.environ.pop(var, None)
        elif arg == "":
            # Toggle.
            if debug_enabled():
                os.environ.pop(var, None)
            else:
                os.environ[var] = "1"
        else:
            return True, "Usage: /py-traceback [on|off]"

        state = "on" if debug_enabled() else "off"
        return True, f"Python traceback: {state}"

    return False, ""


def repl(evaluator: Optional[Evaluator] = None, catalog: Catalog = DEFAULT_CATALOG) -> None:
    """Interactive read-build-check loop with prompt_toolkit."""
    session_state = BuilderSession(catalog=catalog, evaluator=evaluator)

    session: PromptSession[str] = PromptSession(
        history=InMemoryHistory(),
        lexer=PillLexer(catalog),
        completer=_BuilderCompleter(catalog),
        complete_while_typing=True,
    )

    print("racket road builder (Ctrl-D to exit, /help for commands)")

    while True:
        try:
            text = session.prompt(f"[{session_state.current + 1}]> ")
        except EOFError:
            print()
            break
        except KeyboardInterrupt:
            print("KeyboardInterrupt")
            continue

        handled, output = _handle_local(text)
        if not handled:
            try:
                output = session_state.handle(text)
            except (CommandError, ExpressionError, CatalogError) as exc:
                print(f"Error: {exc}", file=sys.stderr)
                if debug_enabled():
                    print("".join(traceback.format_exception(exc)), file=sys.stderr, end="")
                continue

        if output:
            print(output)
