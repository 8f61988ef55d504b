from __future__ import annotations

import sys
import traceback
from pathlib import Path
from typing import List, Optional, Sequence

from .catalog import DEFAULT_CATALOG, Catalog
from .checker import check
from .codegen import generate
from .evaluators import Evaluator, build_chain
from .expression import Expression
from .utils import configure_logging, debug_enabled
from .validator import ValidationResult

USAGE = """usage: racket-road [--no-eval] [--evaluator NAMES] [--pills ROWS] [--repl] [FILE|-|CODE]

  FILE|-|CODE       source to check: a path, '-' for stdin, or literal code
  --pills ROWS      build code from pill ids, lines separated by ';'
  --evaluator NAMES comma list of local, llm, compiler (default $RACKET_ROAD_EVALUATORS or local)
  --no-eval         only run the local syntax check
  --repl            start the interactive builder
"""


def pills_to_code(rows: str, catalog: Catalog = DEFAULT_CATALOG) -> str:
    """'define x list num-1; filter even? x' -> generated source."""
    lines = [row.split() for row in rows.split(";")]
    return generate(Expression.from_ids(lines, catalog))


def run(source: str, evaluator: Optional[Evaluator] = None, catalog: Catalog = DEFAULT_CATALOG) -> ValidationResult:
    return check(source, evaluator, catalog)


def render(result: ValidationResult) -> str:
    lines = [("ok: " if result.is_valid else "error: ") + result.message]
    if result.error_line_index is not None:
        lines.append(f"line: {result.error_line_index + 1}")
    if result.simulated_evaluation is not None and result.simulated_evaluation != result.message:
        lines.append(f"=> {result.simulated_evaluation}")
    return "\n".join(lines)


def _load_source(arg: Optional[str]) -> str:
    """
    Resolve CLI input into source text.
    - None or "-" => read stdin.
    - Existing path => read file contents.
    - Otherwise treat the argument as literal source.
    """

    if arg is None or arg == "-":
        data = sys.stdin.read()
        if not data:
            raise SystemExit("No input provided on stdin")
        return data

    candidate = Path(arg)
    try:
        is_file = candidate.is_file()
    except OSError:
        # Code longer than the filename limit
        is_file = False

    if is_file:
        return candidate.read_text(encoding="utf-8")

    return arg


def main(argv: Optional[Sequence[str]] = None) -> int:
    evaluate = True
    evaluator_names: Optional[List[str]] = None
    pill_rows: Optional[str] = None
    start_repl = False
    arg = None
    it = iter(sys.argv[1:] if argv is None else argv)

    for token in it:
        if token in ("-h", "--help"):
            print(USAGE, end="")
            return 0

        if token == "--no-eval":
            evaluate = False
            continue

        if token == "--repl":
            start_repl = True
            continue

        if token.startswith("--evaluator="):
            evaluator_names = token.split("=", 1)[1].split(",")
            continue

        if token in ("--evaluator", "--pills"):
            try:
                value = next(it)
            except StopIteration:
                raise SystemExit(f"{token} flag requires a value") from None
            if token == "--pills":
                pill_rows = value
            else:
                evaluator_names = value.split(",")
            continue

        if arg is None:
            arg = token
        else:
            raise SystemExit(f"Unexpected argument: {token}")

    configure_logging()

    try:
        evaluator = build_chain([n.strip().lower() for n in evaluator_names] if evaluator_names else None) if evaluate else None
    except ValueError as exc:
        raise SystemExit(str(exc)) from None

    if start_repl or (arg is None and pill_rows is None and sys.stdin.isatty()):
        from .repl import repl

        repl(evaluator)
        return 0

    try:
        source = pills_to_code(pill_rows) if pill_rows is not None else _load_source(arg)
        result = run(source, evaluator)
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        if debug_enabled():
            traceback.print_exc()
        return 2

    if pill_rows is not None:
        print(source)
    print(render(result))
    return 0 if result.is_valid else 1


if __name__ == "__main__":
    sys.exit(main())
