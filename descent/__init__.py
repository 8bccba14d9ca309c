"""descent — recursive-descent syntax checker for a small imperative language.

Pipeline: source text -> `SimpleLexer` -> `SyntaxAnalyser` -> `EventSink`.
"""

from .grammar.symbols import Symbol, Nonterminal
from .errors import ParseError, LexicalError, error_chain, format_error_chain
from .lex import Token, TokenSource, SimpleLexer, TokenStream, tokenize
from .events import EventKind, ParseEvent, EventSink, RecordingSink, TraceSink, TeeSink
from .grammar.parser import SyntaxAnalyser, parse_text, check_file

__version__ = "0.1.0"
