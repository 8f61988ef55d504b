"""
Line tokenizer for generated Racket text

Splits one line into flat lexical tokens:
- Whitespace outside strings separates tokens and is dropped
- Parentheses are always standalone tokens
- Double-quoted strings are kept whole, including spaces and parens
- An unterminated string is flushed as its own token
"""

from typing import List

PARENS = ("(", ")")


class Tokenizer:
    """Single-pass character scanner for one line of text."""

    def __init__(self, line: str):
        self.source = line
        self.pos = 0
        self.tokens: List[str] = []
        self.pending = ""
        self.in_string = False

    def tokenize(self) -> List[str]:
        while self.pos < len(self.source):
            self.scan_char(self.advance())

        self.flush()
        return self.tokens

    def scan_char(self, ch: str):
        if ch == '"':
            self.pending += ch
            self.in_string = not self.in_string
            # Closing quote ends the literal
            if not self.in_string:
                self.flush()
            return

        if self.in_string:
            self.pending += ch
            return

        if ch in PARENS:
            self.flush()
            self.tokens.append(ch)
            return

        if ch.isspace():
            self.flush()
            return

        self.pending += ch

    # ========================================================================
    # Utilities
    # ========================================================================

    def advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        return ch

    def flush(self):
        token = self.pending if self.in_string else self.pending.strip()
        if token.strip():
            self.tokens.append(token)
        self.pending = ""


def tokenize(line: str) -> List[str]:
    """Convenience function to tokenize one line"""
    return Tokenizer(line).tokenize()
