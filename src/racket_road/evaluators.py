"""
Evaluator strategies behind the "check syntax" action.

Every strategy implements ``evaluate(code) -> str``: a value, a definition
confirmation ("x defined"), or a string starting with "Error:". Transport
failures raise EvaluatorError. EvaluatorChain tries strategies in order until
one returns a real answer.
"""

from __future__ import annotations

import json
import logging
import re
import urllib.error
import urllib.request
from typing import Any, Callable, Dict, List, Optional, Sequence

from typing_extensions import Protocol

from . import utils
from .interp import evaluate as local_evaluate

log = logging.getLogger(__name__)

ERROR_PREFIX = "Error:"
EMPTY_RESULT = "// Expression is empty"
NO_OUTPUT = "// AI evaluation did not produce a structured output."

# Results that mean "this strategy could not answer", not "the code failed"
SENTINELS = frozenset({"", NO_OUTPUT})

SYSTEM_PROMPT = "You are a Racket programming language interpreter. Reply with JSON only."

PROMPT_TEMPLATE = """Evaluate this Racket code:

```racket
{code}
```

Reply with a JSON object {{"evaluationResult": string, "evaluationSuccess": boolean}}.
- A value: give the value as Racket prints it, success true.
- A definition such as (define x 10): give a short confirmation like "x defined", success true.
- A runtime error (division by zero, unbound identifier): "Error: <message>", success false.
- A syntax error that prevents evaluation: describe it, success false.

Examples:
(+ 1 2) -> {{"evaluationResult": "3", "evaluationSuccess": true}}
(define my-var 42) -> {{"evaluationResult": "my-var defined", "evaluationSuccess": true}}
(+ 1 #t) -> {{"evaluationResult": "Error: expected number, got boolean", "evaluationSuccess": false}}
(define x (list 1 2 3))
(filter even? x) -> {{"evaluationResult": "'(2)", "evaluationSuccess": true}}
"""

_DEFINE_NAME_RE = re.compile(r"^\s*\(define\s+\(?\s*([^\s()]+)")
_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")

Opener = Callable[..., Any]


class EvaluatorError(Exception):
    """The evaluation service could not be reached or answered nonsense"""
    pass


class Evaluator(Protocol):
    name: str

    def evaluate(self, code: str) -> str:
        ...


def is_sentinel(result: str) -> bool:
    return result.strip() in SENTINELS


def is_error(result: str) -> bool:
    return result.startswith(ERROR_PREFIX)


def last_definition(code: str) -> Optional[str]:
    """Name bound by the last define line, if any."""
    name = None
    for line in code.split("\n"):
        match = _DEFINE_NAME_RE.match(line)
        if match:
            name = match.group(1)
    return name


def post_json(url: str, payload: Dict[str, Any], timeout: float,
              headers: Optional[Dict[str, str]] = None, opener: Opener = urllib.request.urlopen) -> Any:
    """POST a JSON body and decode the JSON reply."""
    body = json.dumps(payload).encode("utf-8")
    req = urllib.request.Request(url, data=body, method="POST")
    req.add_header("Content-Type", "application/json")

    for key, value in (headers or {}).items():
        req.add_header(key, value)

    try:
        with opener(req, timeout=timeout) as resp:
            raw = resp.read()
    except urllib.error.HTTPError as exc:
        raise EvaluatorError(f"{url} answered HTTP {exc.code}") from exc
    except (urllib.error.URLError, OSError) as exc:
        raise EvaluatorError(f"{url} unreachable: {exc}") from exc

    try:
        return json.loads(raw)
    except (ValueError, UnicodeDecodeError) as exc:
        raise EvaluatorError(f"{url} returned malformed JSON") from exc


# ============================================================================
# Strategies
# ============================================================================

class LocalEvaluator:
    """In-process reference evaluator for the catalog subset."""

    name = "local"

    def evaluate(self, code: str) -> str:
        if not code.strip():
            return EMPTY_RESULT
        return local_evaluate(code)


class LLMEvaluator:
    """Chat-completions endpoint prompted to act as a Racket interpreter."""

    name = "llm"

    def __init__(self, url: str, model: str, api_key: Optional[str] = None,
                 timeout: float = utils.DEFAULT_HTTP_TIMEOUT, opener: Opener = urllib.request.urlopen):
        self.url = url
        self.model = model
        self.api_key = api_key
        self.timeout = timeout
        self.opener = opener

    def evaluate(self, code: str) -> str:
        if not code.strip():
            return EMPTY_RESULT

        payload = {
            "model": self.model,
            "temperature": 0,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": PROMPT_TEMPLATE.format(code=code)},
            ],
        }
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else None
        data = post_json(self.url, payload, self.timeout, headers, self.opener)

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            raise EvaluatorError("LLM reply has no message content") from None

        return self.parse_reply(content)

    @staticmethod
    def parse_reply(content: str) -> str:
        text = _FENCE_RE.sub("", (content or "").strip())

        try:
            reply = json.loads(text)
        except ValueError:
            return NO_OUTPUT

        if not isinstance(reply, dict) or not isinstance(reply.get("evaluationResult"), str):
            return NO_OUTPUT

        result = reply["evaluationResult"].strip()
        if reply.get("evaluationSuccess") is False and result and not is_error(result):
            result = f"{ERROR_PREFIX} {result}"
        return result


class CompilerApiEvaluator:
    """Runs the code on a Piston-compatible online compiler."""

    name = "compiler"

    def __init__(self, url: str, version: str = "*",
                 timeout: float = utils.DEFAULT_HTTP_TIMEOUT, opener: Opener = urllib.request.urlopen):
        self.url = url
        self.version = version
        self.timeout = timeout
        self.opener = opener

    def evaluate(self, code: str) -> str:
        if not code.strip():
            return EMPTY_RESULT

        payload = {
            "language": "racket",
            "version": self.version,
            "files": [{"name": "main.rkt", "content": "#lang racket\n" + code + "\n"}],
        }
        data = post_json(self.url, payload, self.timeout, opener=self.opener)

        run = data.get("run") if isinstance(data, dict) else None
        if not isinstance(run, dict):
            message = data.get("message") if isinstance(data, dict) else None
            raise EvaluatorError(f"compiler service refused the request: {message or 'no run section'}")

        stdout = (run.get("stdout") or "").strip()
        stderr = (run.get("stderr") or "").strip()

        if stderr or run.get("code") not in (0, None):
            first = stderr.split("\n")[0] if stderr else f"exit code {run.get('code')}"
            return f"{ERROR_PREFIX} {first}"

        if stdout:
            return stdout

        name = last_definition(code)
        return f"{name} defined" if name else ""


class EvaluatorChain:
    """Tries strategies in order; the caller only sees the final answer."""

    name = "chain"

    def __init__(self, strategies: Sequence[Evaluator]):
        if not strategies:
            raise ValueError("EvaluatorChain needs at least one strategy")
        self.strategies: List[Evaluator] = list(strategies)

    def evaluate(self, code: str) -> str:
        failures: List[str] = []

        for strategy in self.strategies:
            try:
                result = strategy.evaluate(code)
            except EvaluatorError as exc:
                log.warning("evaluator %s failed: %s", strategy.name, exc)
                failures.append(f"{strategy.name}: {exc}")
                continue

            if is_sentinel(result):
                log.debug("evaluator %s gave no answer, trying next", strategy.name)
                failures.append(f"{strategy.name}: no answer")
                continue

            log.debug("evaluator %s answered", strategy.name)
            return result.strip()

        raise EvaluatorError("no evaluator produced a result (" + "; ".join(failures) + ")")


def make_evaluator(name: str) -> Evaluator:
    """Build one strategy from environment settings."""
    if name == "local":
        return LocalEvaluator()

    if name == "llm":
        return LLMEvaluator(utils.llm_url(), utils.llm_model(), utils.llm_api_key(), timeout=utils.http_timeout())

    if name == "compiler":
        return CompilerApiEvaluator(utils.compiler_url(), utils.compiler_version(), timeout=utils.http_timeout())

    raise ValueError(f"Unknown evaluator '{name}' (expected local, llm or compiler)")


def build_chain(names: Optional[Sequence[str]] = None) -> EvaluatorChain:
    if names is None:
        names = utils.evaluator_names()
    return EvaluatorChain([make_evaluator(name) for name in names])
