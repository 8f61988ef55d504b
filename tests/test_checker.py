from __future__ import annotations

import pytest

from racket_road.checker import EVALUATED_MESSAGE, CheckBoard, check
from racket_road.evaluators import LocalEvaluator
from racket_road.validator import EMPTY_MESSAGE, PLAUSIBLE_MESSAGE, ValidationResult
from tests.support.harness import EvaluatorError, StubEvaluator


def test_without_evaluator_only_local_check() -> None:
    result = check("(+ 1 2)")
    assert result.is_valid
    assert result.message == PLAUSIBLE_MESSAGE
    assert result.simulated_evaluation is None


def test_invalid_code_is_not_evaluated() -> None:
    stub = StubEvaluator(["3"])
    result = check("(+ 1 2", stub)

    assert not result.is_valid
    assert result.error_line_index == 0
    assert stub.calls == []


def test_empty_code_is_not_evaluated() -> None:
    stub = StubEvaluator(["3"])
    result = check("", stub)

    assert result.is_valid
    assert result.message == EMPTY_MESSAGE
    assert stub.calls == []


def test_successful_evaluation() -> None:
    stub = StubEvaluator(["'(2)"])
    code = "(define x (list 1 2 3))\n(filter even? x)"
    result = check(code, stub)

    assert result == ValidationResult(True, EVALUATED_MESSAGE, simulated_evaluation="'(2)")
    assert stub.calls == [code]


def test_error_result_marks_invalid() -> None:
    result = check("(first x)", StubEvaluator(["Error: x: unbound identifier"]))

    assert not result.is_valid
    assert result.message == "Error: x: unbound identifier"
    assert result.simulated_evaluation == "Error: x: unbound identifier"
    assert result.error_line_index is None


def test_service_failure_is_reported_not_raised() -> None:
    result = check("(+ 1 2)", StubEvaluator([EvaluatorError("no evaluator produced a result (llm: timeout)")]))

    assert not result.is_valid
    assert result.message.startswith("Evaluation service failed: ")
    assert "llm: timeout" in result.message
    assert result.simulated_evaluation is None


def test_local_evaluator_end_to_end() -> None:
    result = check("(foldr + 0 (list 1 2 3))", LocalEvaluator())
    assert result.is_valid
    assert result.simulated_evaluation == "6"


def test_local_evaluator_runtime_error() -> None:
    result = check("(first (list))", LocalEvaluator())
    assert not result.is_valid
    assert result.message.startswith("Error: first: contract violation")


# ============================================================================
# CheckBoard
# ============================================================================

def _result(message: str) -> ValidationResult:
    return ValidationResult(True, message)


def test_board_tickets_increase() -> None:
    board = CheckBoard()
    assert board.begin() == 1
    assert board.begin() == 2


def test_board_drops_stale_result() -> None:
    board = CheckBoard()
    old = board.begin()
    new = board.begin()

    assert board.publish(new, _result("new"))
    assert not board.publish(old, _result("old"))
    assert board.result.message == "new"


def test_board_accepts_in_order_results() -> None:
    board = CheckBoard()
    first = board.begin()
    second = board.begin()

    assert board.publish(first, _result("first"))
    assert board.publish(second, _result("second"))
    assert board.shown_ticket == second


@pytest.mark.parametrize("source, valid", [("(+ 1 2)", True), ("(+ 1", False)], ids=["valid", "invalid"])
def test_board_run(source: str, valid: bool) -> None:
    board = CheckBoard()
    result = board.run(source, LocalEvaluator())

    assert result.is_valid is valid
    assert board.result is result
    assert board.shown_ticket == 1
