"""descent recursive-descent syntax analyser.

Grammar (one method per nonterminal)::

    statement-part       : "begin" statement-list "end" ;
    statement-list       : statement (";" statement)* ;
    statement            : assignment-statement | if-statement | while-statement
                         | procedure-statement | until-statement | for-statement ;
    assignment-statement : IDENTIFIER ":=" (STRING_CONSTANT | expression) ;
    if-statement         : "if" condition "then" statement-list
                           ("else" statement-list)? "end" "if" ;
    while-statement      : "while" condition "loop" statement-list "end" "loop" ;
    procedure-statement  : "call" IDENTIFIER "(" argument-list ")" ;
    until-statement      : "do" statement-list "until" condition ;
    for-statement        : "for" "(" assignment-statement ";" condition ";"
                           assignment-statement ")" "do" statement-list "end" "loop" ;
    argument-list        : IDENTIFIER ("," IDENTIFIER)* ;
    condition            : IDENTIFIER conditional-operator
                           (IDENTIFIER | NUMBER_CONSTANT | STRING_CONSTANT) ;
    conditional-operator : ">" | ">=" | "=" | "/=" | "<" | "<=" ;
    expression           : term (("+" | "-") term)* ;
    term                 : factor (("*" | "/") factor)* ;
    factor               : IDENTIFIER | NUMBER_CONSTANT | "(" expression ")" ;

- Single token of lookahead (`SyntaxAnalyser.next_token`).
- Repetitions are loops: one enter/exit pair per list, separators reported in order.
- Every rule re-raises a caught error as a new `ParseError` (``raise ... from``)
  naming what the rule expected, so the chain reads innermost -> outermost.
- Exit events fire on every path, including while unwinding.
"""

from __future__ import annotations
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Dict, Iterator, NoReturn, Optional, Union

from ..errors import LexicalError, ParseError, innermost
from ..events import EventSink, RecordingSink
from ..lex import SimpleLexer, Token, TokenSource
from .symbols import (
    ADDING_OPERATORS, CONDITIONAL_OPERATORS, MULTIPLYING_OPERATORS,
    Nonterminal, Symbol,
)

_STATEMENT_EXPECTED = "<assignment>, <if>, <while>, <procedure>, <until>, or <for>"
_OPERATOR_EXPECTED = "> , >= , = , /= , < or <="
_OPERAND_EXPECTED = "identifier, number constant or string constant"
_FACTOR_START_EXPECTED = "identifier, number constant, or '('"
_FACTOR_EXPECTED = "identifier, number constant, or <expression>"

_CONDITION_OPERANDS = frozenset({
    Symbol.IDENTIFIER, Symbol.NUMBER_CONSTANT, Symbol.STRING_CONSTANT,
})


def _found(tok: Token) -> str:
    return "end of input" if tok.is_eof else f"'{tok.text}'"


class SyntaxAnalyser:
    """
    SyntaxAnalyser
    ==============
    Checks one token stream against the grammar above. Construction primes the
    lookahead from `source`; `parse()` then runs the whole check once.
    Instances are single-use.

    Parameters
    ----------
    source : TokenSource
        Where tokens are pulled from (``next_token()``).
    sink : EventSink, optional
        Receives enter/exit/terminal events and error reports. Defaults to a
        plain `EventSink` that only raises on errors.
    source_name : str
        Shown in error messages (normally the file name).
    """

    def __init__(self, source: TokenSource, sink: Optional[EventSink] = None,
                 source_name: str = "<input>"):
        self.source = source
        self.sink = sink if sink is not None else EventSink()
        self.source_name = source_name
        self.next_token: Token = source.next_token()

    # ---- error messages / terminals ----
    def error_message(self, expected: str, actual: Token) -> str:
        return (f"Syntax error at line {actual.line} in {self.source_name}: "
                f"expected {expected} but found {_found(actual)}.")

    def accept_terminal(self, symbol: Symbol) -> None:
        """Consume the lookahead if it is `symbol`, otherwise report (raises)."""
        if self.next_token.symbol == symbol:
            self.sink.terminal_accepted(self.next_token)
            self.next_token = self.source.next_token()
        else:
            self._fail(f"'{symbol.display_name}'")

    def _wrap(self, expected: str, cause: SyntaxError) -> ParseError:
        """The error a rule raises in place of `cause`."""
        root = innermost(cause)
        if isinstance(root, LexicalError):
            # lookahead still holds the last accepted token; point at the lexer's stop
            found = f"'{root.text}'" if root.text else "invalid input"
            msg = (f"Syntax error at line {root.line} in {self.source_name}: "
                   f"expected {expected} but found {found}.")
            return ParseError(msg, line=root.line)
        return ParseError(self.error_message(expected, self.next_token), self.next_token)

    def _fail(self, expected: str) -> NoReturn:
        self.sink.report_error(self.next_token, self.error_message(expected, self.next_token))
        raise RuntimeError(f"{type(self.sink).__name__}.report_error returned normally")

    @contextmanager
    def _rule(self, nt: Nonterminal, expected: str) -> Iterator[None]:
        """Enter/exit bracket for one rule; wraps any syntax error raised inside."""
        self.sink.enter_nonterminal(nt.value)
        try:
            yield
        except SyntaxError as e:
            raise self._wrap(expected, e) from e
        finally:
            self.sink.exit_nonterminal(nt.value)

    # ---- entry point ----
    def parse(self) -> None:
        """Check a complete program: statement part followed by end of input."""
        self.statement_part()
        self.accept_terminal(Symbol.EOF)
        self.sink.report_success()

    # ---- rules ----
    def statement_part(self) -> None:
        with self._rule(Nonterminal.STATEMENT_PART, "<statement list> between 'begin' and 'end'"):
            self.accept_terminal(Symbol.BEGIN)
            self.statement_list()
            self.accept_terminal(Symbol.END)

    def statement_list(self) -> None:
        with self._rule(Nonterminal.STATEMENT_LIST, "<statement list>"):
            self.statement()
            while self.next_token.symbol == Symbol.SEMICOLON:
                self.accept_terminal(Symbol.SEMICOLON)
                self.statement()

    def statement(self) -> None:
        with self._rule(Nonterminal.STATEMENT, _STATEMENT_EXPECTED):
            handler = self._STATEMENTS.get(self.next_token.symbol)
            if handler is None:
                self._fail(_STATEMENT_EXPECTED)
            handler(self)

    def assignment_statement(self) -> None:
        with self._rule(Nonterminal.ASSIGNMENT_STATEMENT, "<expression> or string constant"):
            self.accept_terminal(Symbol.IDENTIFIER)
            self.accept_terminal(Symbol.BECOMES)
            if self.next_token.symbol == Symbol.STRING_CONSTANT:
                self.accept_terminal(Symbol.STRING_CONSTANT)
            else:
                self.expression()

    def if_statement(self) -> None:
        with self._rule(Nonterminal.IF_STATEMENT, Nonterminal.IF_STATEMENT.value):
            self.accept_terminal(Symbol.IF)
            self.condition()
            self.accept_terminal(Symbol.THEN)
            self.statement_list()
            if self.next_token.symbol == Symbol.ELSE:
                self.accept_terminal(Symbol.ELSE)
                self.statement_list()
            self.accept_terminal(Symbol.END)
            self.accept_terminal(Symbol.IF)

    def while_statement(self) -> None:
        with self._rule(Nonterminal.WHILE_STATEMENT, Nonterminal.WHILE_STATEMENT.value):
            self.accept_terminal(Symbol.WHILE)
            self.condition()
            self.accept_terminal(Symbol.LOOP)
            self.statement_list()
            self.accept_terminal(Symbol.END)
            self.accept_terminal(Symbol.LOOP)

    def procedure_statement(self) -> None:
        with self._rule(Nonterminal.PROCEDURE_STATEMENT, Nonterminal.PROCEDURE_STATEMENT.value):
            self.accept_terminal(Symbol.CALL)
            self.accept_terminal(Symbol.IDENTIFIER)
            self.accept_terminal(Symbol.LEFT_PARENTHESIS)
            self.argument_list()
            self.accept_terminal(Symbol.RIGHT_PARENTHESIS)

    def until_statement(self) -> None:
        with self._rule(Nonterminal.UNTIL_STATEMENT, Nonterminal.UNTIL_STATEMENT.value):
            self.accept_terminal(Symbol.DO)
            self.statement_list()
            self.accept_terminal(Symbol.UNTIL)
            self.condition()

    def for_statement(self) -> None:
        with self._rule(Nonterminal.FOR_STATEMENT, Nonterminal.FOR_STATEMENT.value):
            self.accept_terminal(Symbol.FOR)
            self.accept_terminal(Symbol.LEFT_PARENTHESIS)
            self.assignment_statement()
            self.accept_terminal(Symbol.SEMICOLON)
            self.condition()
            self.accept_terminal(Symbol.SEMICOLON)
            self.assignment_statement()
            self.accept_terminal(Symbol.RIGHT_PARENTHESIS)
            self.accept_terminal(Symbol.DO)
            self.statement_list()
            self.accept_terminal(Symbol.END)
            self.accept_terminal(Symbol.LOOP)

    def argument_list(self) -> None:
        with self._rule(Nonterminal.ARGUMENT_LIST, "<argument list>"):
            self.accept_terminal(Symbol.IDENTIFIER)
            while self.next_token.symbol == Symbol.COMMA:
                self.accept_terminal(Symbol.COMMA)
                self.accept_terminal(Symbol.IDENTIFIER)

    def condition(self) -> None:
        with self._rule(Nonterminal.CONDITION, "<condition>"):
            self.accept_terminal(Symbol.IDENTIFIER)
            self.conditional_operator()
            if self.next_token.symbol in _CONDITION_OPERANDS:
                self.accept_terminal(self.next_token.symbol)
            else:
                self._fail(_OPERAND_EXPECTED)

    def conditional_operator(self) -> None:
        with self._rule(Nonterminal.CONDITIONAL_OPERATOR, _OPERATOR_EXPECTED):
            if self.next_token.symbol in CONDITIONAL_OPERATORS:
                self.accept_terminal(self.next_token.symbol)
            else:
                self._fail(_OPERATOR_EXPECTED)

    def expression(self) -> None:
        with self._rule(Nonterminal.EXPRESSION, "<term>"):
            self.term()
            while self.next_token.symbol in ADDING_OPERATORS:
                self.accept_terminal(self.next_token.symbol)
                self.term()

    def term(self) -> None:
        with self._rule(Nonterminal.TERM, "<factor>"):
            self.factor()
            while self.next_token.symbol in MULTIPLYING_OPERATORS:
                self.accept_terminal(self.next_token.symbol)
                self.factor()

    def factor(self) -> None:
        with self._rule(Nonterminal.FACTOR, _FACTOR_EXPECTED):
            sym = self.next_token.symbol
            if sym == Symbol.IDENTIFIER or sym == Symbol.NUMBER_CONSTANT:
                self.accept_terminal(sym)
            elif sym == Symbol.LEFT_PARENTHESIS:
                self.accept_terminal(Symbol.LEFT_PARENTHESIS)
                self.expression()
                self.accept_terminal(Symbol.RIGHT_PARENTHESIS)
            else:
                self._fail(_FACTOR_START_EXPECTED)

    # statement dispatch on the first token
    _STATEMENTS: Dict[Symbol, Callable[["SyntaxAnalyser"], None]] = {
        Symbol.IDENTIFIER: assignment_statement,
        Symbol.IF: if_statement,
        Symbol.WHILE: while_statement,
        Symbol.CALL: procedure_statement,
        Symbol.DO: until_statement,
        Symbol.FOR: for_statement,
    }


# --- Convenience ---
def load_source_text(path: Union[str, Path]) -> str:
    """Program file contents, UTF-8 (a leading BOM is dropped), ``\\n`` line ends."""
    with open(path, encoding="utf-8-sig", newline=None) as f:
        return f.read()


def parse_text(text: str, sink: Optional[EventSink] = None,
               source_name: str = "<input>") -> EventSink:
    """Tokenize and check `text`; returns the sink (a `RecordingSink` unless given)."""
    if sink is None:
        sink = RecordingSink()
    SyntaxAnalyser(SimpleLexer(text), sink, source_name=source_name).parse()
    return sink


def check_file(path: Union[str, Path], sink: Optional[EventSink] = None) -> EventSink:
    """Load `path` and check it; errors name the file."""
    text = load_source_text(path)
    return parse_text(text, sink, source_name=str(path))
