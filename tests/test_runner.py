from __future__ import annotations

import io

import pytest

from racket_road.runner import USAGE, _load_source, main, pills_to_code, render
from racket_road.validator import ValidationResult


def test_help(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--help"]) == 0
    assert capsys.readouterr().out == USAGE


def test_valid_code_without_eval(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--no-eval", "(+ 1 2)"]) == 0
    assert capsys.readouterr().out == "ok: Syntax appears plausible.\n"


def test_invalid_code_exit_status(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--no-eval", "(+ 1 2"]) == 1

    out = capsys.readouterr().out
    assert out.startswith("error: Syntax Error: Unmatched opening parenthesis")
    assert "line: 1\n" in out


def test_pills_are_generated_and_evaluated(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--pills", "define x list num-generic; filter even? x"]) == 0

    out = capsys.readouterr().out
    assert out == (
        "(define x (list 1 2 3))\n"
        "(filter even? x)\n"
        "ok: Syntax OK. Evaluated successfully.\n"
        "=> '(2)\n"
    )


def test_runtime_error_from_local_evaluator(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--evaluator=local", "(first (list))"]) == 1
    assert capsys.readouterr().out.startswith("error: Error: first: contract violation")


def test_unknown_pill_id(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--pills", "define nope"]) == 2
    assert "Error: Unknown pill id 'nope'" in capsys.readouterr().err


def test_source_from_file(tmp_path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "prog.rkt"
    path.write_text("(define x 10)\n(define y)\n", encoding="utf-8")

    assert main(["--no-eval", str(path)]) == 1
    assert "line: 2" in capsys.readouterr().out


def test_source_from_stdin(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO("(list)"))
    assert _load_source("-") == "(list)"


def test_empty_stdin(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO(""))
    with pytest.raises(SystemExit, match="No input provided on stdin"):
        _load_source(None)


def test_literal_source() -> None:
    assert _load_source("(first x)") == "(first x)"


def test_long_literal_source(capsys: pytest.CaptureFixture[str]) -> None:
    code = "(list " + "1 " * 200 + ")"

    assert _load_source(code) == code
    assert main(["--no-eval", code]) == 0
    assert capsys.readouterr().out == "ok: Syntax appears plausible.\n"


@pytest.mark.parametrize(
    "argv, message",
    [
        pytest.param(["--evaluator", "oracle", "x"], "Unknown evaluator 'oracle'", id="unknown-evaluator"),
        pytest.param(["--pills"], "--pills flag requires a value", id="missing-value"),
        pytest.param(["a", "b"], "Unexpected argument: b", id="two-sources"),
    ],
)
def test_usage_errors(argv, message: str) -> None:
    with pytest.raises(SystemExit, match=message):
        main(argv)


def test_pills_to_code_separates_lines() -> None:
    assert pills_to_code("first x ;; rest x") == "(first x)\n(rest x)"


@pytest.mark.parametrize(
    "result, expected",
    [
        pytest.param(ValidationResult(True, "Syntax appears plausible."), "ok: Syntax appears plausible.", id="ok"),
        pytest.param(
            ValidationResult(False, "Syntax Error on line 2: boom", 1),
            "error: Syntax Error on line 2: boom\nline: 2",
            id="line-error",
        ),
        pytest.param(
            ValidationResult(True, "Syntax OK. Evaluated successfully.", simulated_evaluation="3"),
            "ok: Syntax OK. Evaluated successfully.\n=> 3",
            id="evaluated",
        ),
        pytest.param(
            ValidationResult(False, "Error: boom", simulated_evaluation="Error: boom"),
            "error: Error: boom",
            id="evaluation-error-not-repeated",
        ),
    ],
)
def test_render(result: ValidationResult, expected: str) -> None:
    assert render(result) == expected
