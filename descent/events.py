# descent/events.py
"""Event sinks driven by the parser.

The parser reports, in depth-first order:
- ``enter_nonterminal(name)`` / ``exit_nonterminal(name)`` around every rule
- ``terminal_accepted(token)`` for every matched terminal
- ``report_error(token, message)`` on a mismatch, which **always raises**
- ``report_success()`` once the whole input was accepted
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import List, NoReturn, Optional, TextIO, Tuple
import sys

from .errors import ParseError
from .lex import Token


class EventKind(str, Enum):
    ENTER = "enter"
    EXIT = "exit"
    TERMINAL = "terminal"


@dataclass(frozen=True)
class ParseEvent:
    kind: EventKind
    name: str                       # rule label, or the symbol name for terminals
    token: Optional[Token] = None   # only for TERMINAL

    def __str__(self) -> str:
        if self.kind is EventKind.TERMINAL:
            return f"terminal {self.name} {self.token.text!r}"
        return f"{self.kind.value} {self.name}"


class EventSink:
    """Base sink: ignores progress events and turns error reports into `ParseError`."""

    def enter_nonterminal(self, name: str) -> None:
        pass

    def exit_nonterminal(self, name: str) -> None:
        pass

    def terminal_accepted(self, token: Token) -> None:
        pass

    def on_error(self, token: Token, message: str) -> None:
        """Hook run just before `report_error` raises."""

    def report_error(self, token: Token, message: str) -> NoReturn:
        self.on_error(token, message)
        raise ParseError(message, token)

    def report_success(self) -> None:
        pass


class RecordingSink(EventSink):
    """Keeps every event in order; used by tests and by `parse_text`."""

    def __init__(self) -> None:
        self.events: List[ParseEvent] = []
        self.succeeded = False
        self.error: Optional[Tuple[Token, str]] = None

    def enter_nonterminal(self, name: str) -> None:
        self.events.append(ParseEvent(EventKind.ENTER, str(name)))

    def exit_nonterminal(self, name: str) -> None:
        self.events.append(ParseEvent(EventKind.EXIT, str(name)))

    def terminal_accepted(self, token: Token) -> None:
        self.events.append(ParseEvent(EventKind.TERMINAL, token.symbol.name, token))

    def on_error(self, token: Token, message: str) -> None:
        self.error = (token, message)

    def report_success(self) -> None:
        self.succeeded = True

    def terminals(self) -> List[Token]:
        return [e.token for e in self.events if e.kind is EventKind.TERMINAL]

    def render(self) -> str:
        return "\n".join(str(e) for e in self.events)


class TraceSink(EventSink):
    """
    TraceSink
    =========
    Writes the derivation as an indented trace, e.g.::

        begin <statement part>
          BEGIN 'begin' on line 1
          begin <statement list>
          ...
          end <statement list>
          END 'end' on line 3
        end <statement part>
        parse succeeded
    """

    def __init__(self, stream: Optional[TextIO] = None, indent: str = "  "):
        self.stream = stream if stream is not None else sys.stdout
        self.indent = indent
        self.depth = 0

    def _write(self, text: str) -> None:
        self.stream.write(self.indent * self.depth + text + "\n")

    def enter_nonterminal(self, name: str) -> None:
        self._write(f"begin {name}")
        self.depth += 1

    def exit_nonterminal(self, name: str) -> None:
        self.depth -= 1
        self._write(f"end {name}")

    def terminal_accepted(self, token: Token) -> None:
        shown = token.text if not token.is_eof else "<EOF>"
        self._write(f"{token.symbol.name} {shown!r} on line {token.line}")

    def on_error(self, token: Token, message: str) -> None:
        self._write(f"syntax error: {message}")

    def report_success(self) -> None:
        self._write("parse succeeded")


class TeeSink(EventSink):
    """Forwards every event to each wrapped sink in order."""

    def __init__(self, *sinks: EventSink):
        self.sinks = list(sinks)

    def enter_nonterminal(self, name: str) -> None:
        for s in self.sinks:
            s.enter_nonterminal(name)

    def exit_nonterminal(self, name: str) -> None:
        for s in self.sinks:
            s.exit_nonterminal(name)

    def terminal_accepted(self, token: Token) -> None:
        for s in self.sinks:
            s.terminal_accepted(token)

    def on_error(self, token: Token, message: str) -> None:
        for s in self.sinks:
            s.on_error(token, message)

    def report_success(self) -> None:
        for s in self.sinks:
            s.report_success()
