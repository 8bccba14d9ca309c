"""Terminal alphabet and nonterminal labels shared by the lexer and the parser."""
from __future__     import annotations
from enum           import Enum, IntEnum
from typing         import Dict, FrozenSet


class Symbol(IntEnum):
    """
    Symbol
    ======
    The closed set of terminal kinds. The lexer classifies every lexeme as
    exactly one of these and the parser matches lookahead against them.

    - ``EOF`` is always 0 and marks end of input.
    - Keyword and punctuation members map to a fixed spelling
      (see ``LITERALS``); the three literal classes do not.
    """
    EOF = 0

    # literal classes
    IDENTIFIER = 1
    NUMBER_CONSTANT = 2
    STRING_CONSTANT = 3

    # keywords
    BEGIN = 10
    END = 11
    IF = 12
    THEN = 13
    ELSE = 14
    WHILE = 15
    LOOP = 16
    CALL = 17
    DO = 18
    UNTIL = 19
    FOR = 20

    # punctuation
    BECOMES = 30
    SEMICOLON = 31
    COMMA = 32
    LEFT_PARENTHESIS = 33
    RIGHT_PARENTHESIS = 34

    # arithmetic operators
    PLUS = 40
    MINUS = 41
    TIMES = 42
    DIVIDE = 43

    # conditional operators
    GREATER_THAN = 50
    GREATER_EQUAL = 51
    EQUAL = 52
    NOT_EQUAL = 53
    LESS_THAN = 54
    LESS_EQUAL = 55

    @property
    def display_name(self) -> str:
        """Human-readable name used in error messages."""
        return _DISPLAY_NAMES[self]


# spelling -> Symbol
KEYWORDS: Dict[str, Symbol] = {
    "begin": Symbol.BEGIN,
    "end": Symbol.END,
    "if": Symbol.IF,
    "then": Symbol.THEN,
    "else": Symbol.ELSE,
    "while": Symbol.WHILE,
    "loop": Symbol.LOOP,
    "call": Symbol.CALL,
    "do": Symbol.DO,
    "until": Symbol.UNTIL,
    "for": Symbol.FOR,
}

PUNCTUATION: Dict[str, Symbol] = {
    ":=": Symbol.BECOMES,
    ";": Symbol.SEMICOLON,
    ",": Symbol.COMMA,
    "(": Symbol.LEFT_PARENTHESIS,
    ")": Symbol.RIGHT_PARENTHESIS,
    "+": Symbol.PLUS,
    "-": Symbol.MINUS,
    "*": Symbol.TIMES,
    "/": Symbol.DIVIDE,
    ">": Symbol.GREATER_THAN,
    ">=": Symbol.GREATER_EQUAL,
    "=": Symbol.EQUAL,
    "/=": Symbol.NOT_EQUAL,
    "<": Symbol.LESS_THAN,
    "<=": Symbol.LESS_EQUAL,
}

LITERALS: Dict[Symbol, str] = {sym: text for text, sym in {**KEYWORDS, **PUNCTUATION}.items()}

_DISPLAY_NAMES: Dict[Symbol, str] = {
    Symbol.EOF: "end of file",
    Symbol.IDENTIFIER: "identifier",
    Symbol.NUMBER_CONSTANT: "number constant",
    Symbol.STRING_CONSTANT: "string constant",
    **LITERALS,
}

ADDING_OPERATORS: FrozenSet[Symbol] = frozenset({Symbol.PLUS, Symbol.MINUS})
MULTIPLYING_OPERATORS: FrozenSet[Symbol] = frozenset({Symbol.TIMES, Symbol.DIVIDE})
CONDITIONAL_OPERATORS: FrozenSet[Symbol] = frozenset({
    Symbol.GREATER_THAN, Symbol.GREATER_EQUAL, Symbol.EQUAL,
    Symbol.NOT_EQUAL, Symbol.LESS_THAN, Symbol.LESS_EQUAL,
})


class Nonterminal(str, Enum):
    """Grammar rule labels, as reported to the event sink."""
    STATEMENT_PART = "<statement part>"
    STATEMENT_LIST = "<statement list>"
    STATEMENT = "<statement>"
    ASSIGNMENT_STATEMENT = "<assignment statement>"
    IF_STATEMENT = "<if statement>"
    WHILE_STATEMENT = "<while statement>"
    PROCEDURE_STATEMENT = "<procedure statement>"
    UNTIL_STATEMENT = "<until statement>"
    FOR_STATEMENT = "<for statement>"
    ARGUMENT_LIST = "<argument list>"
    CONDITION = "<condition>"
    CONDITIONAL_OPERATOR = "<conditional operator>"
    EXPRESSION = "<expression>"
    TERM = "<term>"
    FACTOR = "<factor>"

    def __str__(self) -> str:
        return self.value
