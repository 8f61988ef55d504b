"""
S-expression reader for the local evaluator

Reads Racket text into plain Python data:
- numbers  -> int / float
- strings  -> str
- booleans -> bool
- symbols  -> Symbol (str subclass)
- lists    -> list
- 'datum   -> [Symbol("quote"), datum]
"""

from __future__ import annotations

from typing import Any, List, Optional

from lark import Lark, Transformer, UnexpectedInput, v_args

GRAMMAR = r"""
start: datum*

?datum: list
      | quoted
      | STRING  -> string
      | NUMBER  -> number
      | BOOLEAN -> boolean
      | SYMBOL  -> symbol

list: "(" datum* ")"
    | "[" datum* "]"

quoted: "'" datum

BOOLEAN.3: /#(true|false|t|f)(?![^\s()\[\]";'])/
NUMBER.2: /[+-]?(\d+\.\d*|\.\d+|\d+)(?![^\s()\[\]";'])/
STRING: /"(\\.|[^"\\])*"/s
SYMBOL: /[^\s()\[\]";'#][^\s()\[\]";']*/

COMMENT: /;[^\n]*/

%import common.WS
%ignore WS
%ignore COMMENT
"""


class Symbol(str):
    """Racket symbol; distinct from a string datum."""

    def __repr__(self) -> str:
        return f"Symbol({str.__str__(self)!r})"


QUOTE = Symbol("quote")

_ESCAPES = {"n": "\n", "t": "\t", '"': '"', "\\": "\\"}


class ReadError(Exception):
    """Malformed S-expression text"""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.line = line
        self.column = column
        super().__init__(f"{message} at line {line}, col {column}" if line is not None else message)


def _unescape(body: str) -> str:
    out = ""
    it = iter(body)
    for ch in it:
        if ch == "\\":
            nxt = next(it, "")
            out += _ESCAPES.get(nxt, nxt)
        else:
            out += ch
    return out


@v_args(inline=True)
class ToData(Transformer):
    def start(self, *items: Any) -> List[Any]:
        return list(items)

    def list(self, *items: Any) -> List[Any]:
        return list(items)

    def quoted(self, item: Any) -> List[Any]:
        return [QUOTE, item]

    def string(self, tok) -> str:
        return _unescape(str(tok)[1:-1])

    def number(self, tok) -> int | float:
        text = str(tok)
        if "." in text:
            return float(text)
        return int(text)

    def boolean(self, tok) -> bool:
        return str(tok) in ("#t", "#true")

    def symbol(self, tok) -> Symbol:
        return Symbol(str(tok))


_PARSER: Optional[Lark] = None


def make_parser() -> Lark:
    global _PARSER

    if _PARSER is None:
        _PARSER = Lark(GRAMMAR, parser="lalr", start="start", maybe_placeholders=False)

    return _PARSER


def read(source: str) -> List[Any]:
    """Read every top-level datum in *source*."""
    try:
        tree = make_parser().parse(source)
    except UnexpectedInput as exc:
        line = getattr(exc, "line", None)
        column = getattr(exc, "column", None)
        raise ReadError("read: bad syntax", line, column) from exc

    return ToData().transform(tree)
