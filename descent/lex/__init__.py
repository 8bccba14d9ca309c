# descent/lex/__init__.py
"""descent tokenizer: source text -> classified `Token` stream.

Matching order
--------------
 1) skip whitespace and ``--`` line comments
 2) punctuation/operator literals, **longest first** (``:=`` before ``:``-less
    prefixes, ``>=`` before ``>``, ``/=`` before ``/``)
 3) string constants ``"..."`` (must close on the same line)
 4) number constants ``123`` / ``1.5``
 5) identifiers (Unicode ``XID_Start``/``XID_Continue``); keyword spellings are
    reclassified to their keyword symbol
 6) nothing matched -> `LexicalError`

API
---
- `Token(symbol, text, line, col)` — one classified lexeme
- `TokenSource` protocol: ``next_token() -> Token``
- `SimpleLexer` — the reference `TokenSource` over a string
- `TokenStream` — a `TokenSource` over an already built token list
- `tokenize(text)` — convenience, returns all tokens including the EOF token
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Tuple

import regex

from ..errors import LexicalError
from ..grammar.symbols import KEYWORDS, PUNCTUATION, Symbol


_RE_WS = regex.compile(r"[ \t\f\r\n]+")
_RE_COMMENT = regex.compile(r"--[^\n]*")
_RE_STRING = regex.compile(r'"[^"\n]*"')
_RE_NUMBER = regex.compile(r"[0-9]+(?:\.[0-9]+)?")
_RE_IDENT = regex.compile(r"[\p{XID_Start}_]\p{XID_Continue}*")

# longest spelling first so that two-character operators win over their prefixes
_PUNCT_BY_LENGTH: List[Tuple[str, Symbol]] = sorted(
    PUNCTUATION.items(), key=lambda p: -len(p[0])
)

# --------- Public datatypes ---------

@dataclass(frozen=True)
class Token:
    symbol: Symbol
    text: str   # lexeme as written; "" for EOF
    line: int   # 1-based
    col: int = 1  # 1-based

    @property
    def is_eof(self) -> bool:
        return self.symbol is Symbol.EOF

    def __str__(self) -> str:
        return f"{self.symbol.name}({self.text!r}) @{self.line}:{self.col}"


class TokenSource:
    """What the parser pulls tokens from."""
    def next_token(self) -> Token:
        raise NotImplementedError


# --------- Core implementation ---------

class SimpleLexer(TokenSource):
    """
    SimpleLexer
    ===========
    Reference tokenizer. Bind input with `reset()`, then pull tokens with
    `next_token()` (or look ahead one token with `peek()`). Once input is
    exhausted every call yields an EOF token positioned after the last
    character.
    """
    def __init__(self, text: str = ""):
        self._text = ""
        self._i = 0
        self._line = 1
        self._col = 1
        self._peek_cache: Optional[Token] = None
        self.reset(text)

    # ---- Input binding ----
    def reset(self, text: str, *, line: int = 1, col: int = 1) -> None:
        self._text = text
        self._i = 0
        self._line = line
        self._col = col
        self._peek_cache = None

    # ---- Public API ----
    def peek(self) -> Token:
        if self._peek_cache is None:
            self._peek_cache = self._next_token()
        return self._peek_cache

    def next_token(self) -> Token:
        if self._peek_cache is not None:
            t = self._peek_cache
            self._peek_cache = None
            return t
        return self._next_token()

    def tokens(self) -> Iterator[Token]:
        """Remaining tokens up to and including EOF."""
        while True:
            t = self.next_token()
            yield t
            if t.is_eof:
                return

    # ---- Internals ----
    def _advance_text(self, consumed: str) -> None:
        """Move the cursor past `consumed`, keeping line/column in step."""
        nl = consumed.count("\n")
        if nl:
            self._line += nl
            self._col = len(consumed) - consumed.rfind("\n")
        else:
            self._col += len(consumed)
        self._i += len(consumed)

    def _skip_ignores(self) -> None:
        while self._i < len(self._text):
            m = _RE_WS.match(self._text, self._i) or _RE_COMMENT.match(self._text, self._i)
            if m is None:
                return
            self._advance_text(m.group(0))

    def _make(self, symbol: Symbol, text: str) -> Token:
        return Token(symbol=symbol, text=text, line=self._line, col=self._col)

    def _match_punctuation(self) -> Optional[Token]:
        for lit, sym in _PUNCT_BY_LENGTH:
            if self._text.startswith(lit, self._i):
                return self._make(sym, lit)
        return None

    def _match_string(self) -> Optional[Token]:
        if self._text[self._i] != '"':
            return None
        m = _RE_STRING.match(self._text, self._i)
        if m is None:
            rest = self._text[self._i:].split("\n", 1)[0]
            raise LexicalError("Unterminated string constant", self._line, self._col, rest)
        return self._make(Symbol.STRING_CONSTANT, m.group(0))

    def _match_number(self) -> Optional[Token]:
        m = _RE_NUMBER.match(self._text, self._i)
        if m is None:
            return None
        return self._make(Symbol.NUMBER_CONSTANT, m.group(0))

    def _match_word(self) -> Optional[Token]:
        m = _RE_IDENT.match(self._text, self._i)
        if m is None:
            return None
        word = m.group(0)
        return self._make(KEYWORDS.get(word, Symbol.IDENTIFIER), word)

    def _next_token(self) -> Token:
        self._skip_ignores()
        if self._i >= len(self._text):
            return self._make(Symbol.EOF, "")

        for matcher in (self._match_punctuation, self._match_string,
                        self._match_number, self._match_word):
            tok = matcher()
            if tok is not None:
                self._advance_text(tok.text)
                return tok

        ch = self._text[self._i]
        raise LexicalError(f"Unexpected character {ch!r}", self._line, self._col, ch)


class TokenStream(TokenSource):
    """`TokenSource` over a prepared token sequence.

    When the sequence runs out an EOF token is produced on the line of the last
    token; an explicit EOF token in the sequence is returned as-is.
    """
    def __init__(self, tokens: Iterable[Token]):
        self._tokens = list(tokens)
        self._i = 0

    def next_token(self) -> Token:
        if self._i < len(self._tokens):
            t = self._tokens[self._i]
            self._i += 1
            return t
        last_line = self._tokens[-1].line if self._tokens else 1
        return Token(Symbol.EOF, "", last_line)


# Convenience
def tokenize(text: str) -> List[Token]:
    return list(SimpleLexer(text).tokens())
