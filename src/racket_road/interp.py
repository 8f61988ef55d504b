"""
Local reference evaluator for the pill catalog's Racket subset.

Covers what the builder can produce plus a few helpers: define (variable and
function forms), lambda, if, quote, and list/arithmetic builtins. This is a
teaching aid, not a Racket implementation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .reader import QUOTE, ReadError, Symbol, read


class RacketError(Exception):
    """Evaluation error, rendered as an "Error: ..." result"""
    pass


@dataclass
class Pair:
    """Improper pair produced by cons onto a non-list."""

    car: Any
    cdr: Any


@dataclass
class Builtin:
    name: str
    fn: Callable[..., Any]
    min_args: int = 0
    max_args: Optional[int] = None


@dataclass
class Lambda:
    params: List[Symbol]
    body: List[Any]
    env: "Env" = field(repr=False, compare=False)
    name: str = ""


class Void:
    """Result of display and other effect-only builtins."""

    def __repr__(self) -> str:
        return "#<void>"


VOID = Void()


@dataclass
class Env:
    vars: Dict[str, Any] = field(default_factory=dict)
    parent: Optional["Env"] = None

    def lookup(self, name: str) -> Any:
        env: Optional[Env] = self
        while env is not None:
            if name in env.vars:
                return env.vars[name]
            env = env.parent
        raise RacketError(f"{name}: unbound identifier")

    def define(self, name: str, value: Any) -> None:
        self.vars[name] = value


# ============================================================================
# Rendering
# ============================================================================

def _render_num(value: int | float) -> str:
    if isinstance(value, float):
        return repr(value)
    return str(value)


def write_datum(value: Any, display: bool = False) -> str:
    """Racket-style text for a value, without the leading quote."""
    if isinstance(value, bool):
        return "#t" if value else "#f"
    if isinstance(value, (int, float)):
        return _render_num(value)
    if isinstance(value, Symbol):
        return str(value)
    if isinstance(value, str):
        if display:
            return value
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    if isinstance(value, list):
        return "(" + " ".join(write_datum(v, display) for v in value) + ")"
    if isinstance(value, Pair):
        items = [value.car]
        tail = value.cdr
        while isinstance(tail, Pair):
            items.append(tail.car)
            tail = tail.cdr
        body = " ".join(write_datum(v, display) for v in items)
        return f"({body} . {write_datum(tail, display)})"
    if isinstance(value, Builtin):
        return f"#<procedure:{value.name}>"
    if isinstance(value, Lambda):
        return f"#<procedure:{value.name}>" if value.name else "#<procedure>"
    return repr(value)


def print_value(value: Any) -> str:
    """REPL printing: lists and symbols carry a quote prefix."""
    if isinstance(value, (list, Pair, Symbol)):
        return "'" + write_datum(value)
    return write_datum(value)


# ============================================================================
# Builtins
# ============================================================================

BUILTINS: Dict[str, Builtin] = {}


def builtin(name: str, min_args: int = 0, max_args: Optional[int] = None):
    def dec(fn: Callable[..., Any]):
        BUILTINS[name] = Builtin(name, fn, min_args, max_args)
        return fn

    return dec


def _contract(name: str, expected: str, given: Any) -> RacketError:
    return RacketError(f"{name}: contract violation; expected: {expected}, given: {print_value(given)}")


def _numbers(name: str, args: Sequence[Any]) -> None:
    for arg in args:
        if isinstance(arg, bool) or not isinstance(arg, (int, float)):
            raise _contract(name, "number?", arg)


def _proper_list(name: str, value: Any) -> List[Any]:
    if not isinstance(value, list):
        raise _contract(name, "list?", value)
    return value


def _truthy(value: Any) -> bool:
    return value is not False


class Interpreter:
    """Evaluates a program in a fresh global environment per run."""

    def __init__(self):
        self.globals = Env(vars=dict(BUILTINS))
        self.output: List[str] = []

    # ========================================================================
    # Entry point
    # ========================================================================

    def run(self, source: str) -> str:
        """Evaluate every top-level form and return the rendered result."""
        try:
            forms = read(source)
        except ReadError as exc:
            return f"Error: {exc}"

        if not forms:
            return "// Expression is empty"

        shown: List[str] = []
        defined: Optional[str] = None

        try:
            for form in forms:
                if self._is_define(form):
                    defined = self.eval_define(form, self.globals)
                    continue

                value = self.eval(form, self.globals)
                if self.output:
                    shown.append("".join(self.output))
                    self.output.clear()
                if value is not VOID:
                    shown.append(print_value(value))
        except RacketError as exc:
            return f"Error: {exc}"
        except RecursionError:
            return "Error: recursion depth exceeded"

        if self.output:
            shown.append("".join(self.output))

        if shown:
            return "\n".join(shown)
        return f"{defined} defined"

    # ========================================================================
    # Evaluation
    # ========================================================================

    @staticmethod
    def _is_define(form: Any) -> bool:
        return isinstance(form, list) and bool(form) and form[0] == "define" and isinstance(form[0], Symbol)

    def eval(self, form: Any, env: Env) -> Any:
        if isinstance(form, Symbol):
            return env.lookup(form)

        if not isinstance(form, list):
            return form

        if not form:
            raise RacketError("#%app: missing procedure expression")

        head = form[0]

        if isinstance(head, Symbol):
            special = self.SPECIAL_FORMS.get(str(head))
            if special is not None:
                return special(self, form, env)

        proc = self.eval(head, env)
        args = [self.eval(arg, env) for arg in form[1:]]
        return self.apply(proc, args)

    def apply(self, proc: Any, args: List[Any]) -> Any:
        if isinstance(proc, Builtin):
            self._check_arity(proc.name, len(args), proc.min_args, proc.max_args)
            return proc.fn(self, *args)

        if isinstance(proc, Lambda):
            n = len(proc.params)
            self._check_arity(proc.name or "#<procedure>", len(args), n, n)
            env = Env(vars=dict(zip(proc.params, args)), parent=proc.env)
            result: Any = VOID
            for expr in proc.body:
                result = self.eval(expr, env)
            return result

        raise RacketError(f"application: not a procedure; expected a procedure that can be applied to arguments; given: {print_value(proc)}")

    @staticmethod
    def _check_arity(name: str, given: int, min_args: int, max_args: Optional[int]) -> None:
        if given < min_args or (max_args is not None and given > max_args):
            if max_args is None:
                expected = f"at least {min_args}"
            elif min_args == max_args:
                expected = str(min_args)
            else:
                expected = f"{min_args} to {max_args}"
            raise RacketError(f"{name}: arity mismatch; expected: {expected}, given: {given}")

    # ========================================================================
    # Special forms
    # ========================================================================

    def eval_define(self, form: List[Any], env: Env) -> str:
        if len(form) < 3:
            raise RacketError("define: bad syntax (missing expression after identifier)")

        target = form[1]

        if isinstance(target, list):
            if not target or not all(isinstance(p, Symbol) for p in target):
                raise RacketError("define: bad syntax (not an identifier)")
            name, params = target[0], target[1:]
            env.define(name, Lambda(list(params), form[2:], env, name=str(name)))
            return str(name)

        if not isinstance(target, Symbol):
            raise RacketError(f"define: bad syntax (not an identifier); given: {print_value(target)}")
        if len(form) > 3:
            raise RacketError("define: bad syntax (multiple expressions after identifier)")

        value = self.eval(form[2], env)
        if isinstance(value, Lambda) and not value.name:
            value.name = str(target)
        env.define(target, value)
        return str(target)

    def _special_define(self, form: List[Any], env: Env) -> Any:
        # Only allowed at the top level of a program
        raise RacketError("define: not allowed in an expression context")

    def _special_lambda(self, form: List[Any], env: Env) -> Lambda:
        if len(form) < 3 or not isinstance(form[1], list):
            raise RacketError("lambda: bad syntax")
        if not all(isinstance(p, Symbol) for p in form[1]):
            raise RacketError("lambda: bad syntax (not an identifier)")
        return Lambda(list(form[1]), form[2:], env)

    def _special_if(self, form: List[Any], env: Env) -> Any:
        if len(form) != 4:
            raise RacketError("if: bad syntax")
        branch = form[2] if _truthy(self.eval(form[1], env)) else form[3]
        return self.eval(branch, env)

    def _special_quote(self, form: List[Any], env: Env) -> Any:
        if len(form) != 2:
            raise RacketError("quote: bad syntax")
        return form[1]

    SPECIAL_FORMS: Dict[str, Callable[["Interpreter", List[Any], Env], Any]] = {
        "define": _special_define,
        "lambda": _special_lambda,
        "if": _special_if,
        str(QUOTE): _special_quote,
    }


# ============================================================================
# Builtin procedures
# ============================================================================

@builtin("list")
def _list(interp: Interpreter, *args: Any) -> List[Any]:
    return list(args)


@builtin("cons", 2, 2)
def _cons(interp: Interpreter, car: Any, cdr: Any) -> Any:
    if isinstance(cdr, list):
        return [car] + cdr
    return Pair(car, cdr)


@builtin("first", 1, 1)
def _first(interp: Interpreter, lst: Any) -> Any:
    # Improper pairs are not lists
    if not isinstance(lst, list) or not lst:
        raise _contract("first", "(and/c list? (not/c empty?))", lst)
    return lst[0]


@builtin("rest", 1, 1)
def _rest(interp: Interpreter, lst: Any) -> Any:
    if not isinstance(lst, list) or not lst:
        raise _contract("rest", "(and/c list? (not/c empty?))", lst)
    return lst[1:]


@builtin("empty?", 1, 1)
def _empty(interp: Interpreter, value: Any) -> bool:
    return isinstance(value, list) and not value


BUILTINS["null?"] = Builtin("null?", _empty, 1, 1)


@builtin("length", 1, 1)
def _length(interp: Interpreter, lst: Any) -> int:
    return len(_proper_list("length", lst))


def _integer(name: str, value: Any) -> int:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise _contract(name, "integer?", value)
    return value


@builtin("even?", 1, 1)
def _even(interp: Interpreter, n: Any) -> bool:
    return _integer("even?", n) % 2 == 0


@builtin("odd?", 1, 1)
def _odd(interp: Interpreter, n: Any) -> bool:
    return _integer("odd?", n) % 2 == 1


@builtin("+")
def _add(interp: Interpreter, *args: Any) -> Any:
    _numbers("+", args)
    return sum(args, 0)


@builtin("*")
def _mul(interp: Interpreter, *args: Any) -> Any:
    _numbers("*", args)
    result: Any = 1
    for arg in args:
        result *= arg
    return result


@builtin("-", 1)
def _sub(interp: Interpreter, *args: Any) -> Any:
    _numbers("-", args)
    if len(args) == 1:
        return -args[0]
    result = args[0]
    for arg in args[1:]:
        result -= arg
    return result


def _compare(name: str, op: Callable[[Any, Any], bool]) -> Callable[..., bool]:
    def fn(interp: Interpreter, *args: Any) -> bool:
        _numbers(name, args)
        return all(op(a, b) for a, b in zip(args, args[1:]))

    BUILTINS[name] = Builtin(name, fn, 1)
    return fn


_compare("=", lambda a, b: a == b)
_compare("<", lambda a, b: a < b)
_compare(">", lambda a, b: a > b)


@builtin("not", 1, 1)
def _not(interp: Interpreter, value: Any) -> bool:
    return value is False


@builtin("display", 1, 1)
def _display(interp: Interpreter, value: Any) -> Void:
    interp.output.append(write_datum(value, display=True))
    return VOID


def _lists_for(name: str, lists: Tuple[Any, ...]) -> List[List[Any]]:
    checked = [_proper_list(name, lst) for lst in lists]
    if len({len(lst) for lst in checked}) > 1:
        raise RacketError(f"{name}: all lists must have same size")
    return checked


@builtin("map", 2)
def _map(interp: Interpreter, proc: Any, *lists: Any) -> List[Any]:
    checked = _lists_for("map", lists)
    return [interp.apply(proc, list(items)) for items in zip(*checked)]


@builtin("filter", 2, 2)
def _filter(interp: Interpreter, pred: Any, lst: Any) -> List[Any]:
    return [item for item in _proper_list("filter", lst) if _truthy(interp.apply(pred, [item]))]


@builtin("foldr", 3)
def _foldr(interp: Interpreter, proc: Any, init: Any, *lists: Any) -> Any:
    checked = _lists_for("foldr", lists)
    acc = init
    for items in reversed(list(zip(*checked))):
        acc = interp.apply(proc, list(items) + [acc])
    return acc


def evaluate(source: str) -> str:
    return Interpreter().run(source)
