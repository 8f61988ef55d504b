"""The "check syntax" action: local validation, then one evaluator call."""

from __future__ import annotations

import logging
from typing import Optional

from .catalog import DEFAULT_CATALOG, Catalog
from .evaluators import Evaluator, is_error
from .validator import EMPTY_MESSAGE, ValidationResult, check_syntax

log = logging.getLogger(__name__)

EVALUATED_MESSAGE = "Syntax OK. Evaluated successfully."
SERVICE_FAILED = "Evaluation service failed"


def check(source: str, evaluator: Optional[Evaluator] = None, catalog: Catalog = DEFAULT_CATALOG) -> ValidationResult:
    """
    Validate *source* locally and, when it passes, evaluate it.

    Never raises for evaluator problems: they come back as an invalid result.
    """
    local = check_syntax(source, catalog)

    if not local.is_valid or local.message == EMPTY_MESSAGE or evaluator is None:
        return local

    try:
        result = evaluator.evaluate(source)
    except Exception as exc:
        log.warning("evaluation failed: %s", exc, exc_info=log.isEnabledFor(logging.DEBUG))
        return ValidationResult(False, f"{SERVICE_FAILED}: {exc}")

    if is_error(result):
        return ValidationResult(False, result, simulated_evaluation=result)

    return ValidationResult(True, EVALUATED_MESSAGE, simulated_evaluation=result)


class CheckBoard:
    """
    Keeps the newest check result.

    Each check takes a ticket when it starts; a result whose ticket is older
    than the one already shown is dropped.
    """

    def __init__(self):
        self.issued = 0
        self.shown_ticket = 0
        self.result: Optional[ValidationResult] = None

    def begin(self) -> int:
        self.issued += 1
        return self.issued

    def publish(self, ticket: int, result: ValidationResult) -> bool:
        if ticket < self.shown_ticket:
            log.debug("dropping stale check result %d (showing %d)", ticket, self.shown_ticket)
            return False

        self.shown_ticket = ticket
        self.result = result
        return True

    def run(self, source: str, evaluator: Optional[Evaluator] = None, catalog: Catalog = DEFAULT_CATALOG) -> ValidationResult:
        ticket = self.begin()
        result = check(source, evaluator, catalog)
        self.publish(ticket, result)
        return result
