# descent/errors.py
"""Syntax/lexical error types and helpers for walking and printing error chains.

A syntax error is raised once at the innermost point of failure and then
re-raised by every enclosing grammar rule as a *new* `ParseError` chained with
``raise ... from ...``. `error_chain()` recovers the whole sequence.
"""

from __future__ import annotations
from typing import List, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .lex import Token


class ParseError(SyntaxError):
    """Syntax error carrying the offending token.

    Only the message is handed to `SyntaxError` so that ``str(err)`` is the
    message itself (setting ``lineno`` would change the builtin rendering).
    """

    def __init__(self, message: str, token: Optional["Token"] = None,
                 line: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.token = token
        self._line = line

    @property
    def line(self) -> Optional[int]:
        return self.token.line if self.token is not None else self._line

    def __repr__(self) -> str:
        return f"ParseError({self.message!r}, token={self.token!r})"


class LexicalError(SyntaxError):
    """Raised by the lexer for input that starts no token.

    `text` is the offending input: one character, or the rest of the line for
    an unterminated string.
    """

    def __init__(self, message: str, line: int, col: int, text: str = ""):
        super().__init__(f"{message} at {line}:{col}")
        self.message = message
        self.line = line
        self.col = col
        self.text = text


def error_chain(exc: BaseException) -> List[BaseException]:
    """Errors from outermost to innermost, following ``__cause__``."""
    chain: List[BaseException] = []
    cur: Optional[BaseException] = exc
    while cur is not None and cur not in chain:
        chain.append(cur)
        cur = cur.__cause__
    return chain


def innermost(exc: BaseException) -> BaseException:
    return error_chain(exc)[-1]


def format_error_chain(exc: BaseException, innermost_first: bool = False) -> str:
    """One line per link of the chain, outermost first unless asked otherwise."""
    chain = error_chain(exc)
    if innermost_first:
        chain.reverse()
    return "\n".join(str(e) for e in chain)


# ---------- caret snippets ----------

def _line_bounds(src: str, pos: int) -> Tuple[int, int]:
    """[start, end) range of the line containing pos"""
    start = src.rfind("\n", 0, pos)
    start = 0 if start < 0 else start + 1
    end = src.find("\n", pos)
    end = len(src) if end < 0 else end
    return start, end


def _line_start_offset(src: str, line: int) -> int:
    pos = 0
    for _ in range(line - 1):
        nxt = src.find("\n", pos)
        if nxt < 0:
            return len(src)
        pos = nxt + 1
    return pos


def snippet_with_caret(src: str, line: int, col: int) -> str:
    """The source line `line` followed by a caret under column `col` (both 1-based)."""
    start, end = _line_bounds(src, _line_start_offset(src, line))
    line_text = src[start:end]
    caret = " " * (col - 1) + "^"
    return f"{line_text}\n{caret}"
