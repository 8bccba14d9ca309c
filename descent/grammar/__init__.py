# descent/grammar/__init__.py
"""Grammar vocabulary and the recursive-descent syntax analyser.

Only the vocabulary is imported here: the lexer depends on it, and the parser
depends on the lexer.
"""

from .symbols import Symbol, Nonterminal, KEYWORDS, PUNCTUATION
