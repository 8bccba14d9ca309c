# descent/descentc.py
"""descentc – descent CLI

Examples
    $ python -m descent.descentc check examples/loop.prog -D
    $ python -m descent.descentc trace examples/loop.prog
    $ python -m descent.descentc lex --text "begin x := 1 end"

Commands
--------
- check : check one or more files; prints one ``[CHECK OK]`` line per file or
          the error chain of the first syntax error in each file
- trace : check one file and print the begin/end/terminal derivation trace
- lex   : tokenize a file or a string and list the tokens

With -D/--debug, progress details are printed to stderr.
"""

from __future__ import annotations
import argparse
import sys
from typing import Optional

from .errors import LexicalError, ParseError, format_error_chain, innermost, snippet_with_caret
from .events import RecordingSink, TeeSink, TraceSink
from .grammar.parser import SyntaxAnalyser, load_source_text
from .lex import SimpleLexer, tokenize

# ------------------------------
# helpers
# ------------------------------

def _eprint(*args, **kw) -> None:
    print(*args, file=sys.stderr, **kw)


def _print_syntax_error(e: SyntaxError, src: str, innermost_first: bool) -> None:
    _eprint("[SYNTAX ERROR]")
    _eprint(format_error_chain(e, innermost_first=innermost_first))
    root = innermost(e)
    if isinstance(root, ParseError) and root.token is not None:
        _eprint(snippet_with_caret(src, root.token.line, root.token.col))
    elif isinstance(root, LexicalError):
        _eprint(snippet_with_caret(src, root.line, root.col))


def _run(path: str, src: str, sink, debug: bool) -> None:
    """Run one parse over `src`; syntax/lexical errors propagate."""
    analyser = SyntaxAnalyser(SimpleLexer(src), sink, source_name=path)
    analyser.parse()
    if debug and isinstance(sink, RecordingSink):
        _eprint(f"[DEBUG] {path}: events={len(sink.events)} terminals={len(sink.terminals())}")

# ------------------------------
# commands
# ------------------------------

def cmd_check(args) -> int:
    status = 0
    for path in args.files:
        try:
            src = load_source_text(path)
        except OSError as e:
            _eprint("[ERROR]", type(e).__name__, str(e))
            status = 2
            continue
        if args.debug:
            _eprint(f"[DEBUG] {path}: loaded {len(src)} chars")

        sink = RecordingSink()
        try:
            _run(path, src, sink, args.debug)
        except SyntaxError as e:
            _print_syntax_error(e, src, args.innermost_first)
            status = 2
            continue
        print(f"[CHECK OK] {path} terminals={len(sink.terminals())}")
    return status


def cmd_trace(args) -> int:
    try:
        src = load_source_text(args.file)
    except OSError as e:
        _eprint("[ERROR]", type(e).__name__, str(e))
        return 2
    if args.debug:
        _eprint(f"[DEBUG] {args.file}: loaded {len(src)} chars")

    recorder = RecordingSink()
    sink = TeeSink(TraceSink(sys.stdout), recorder)
    try:
        SyntaxAnalyser(SimpleLexer(src), sink, source_name=args.file).parse()
    except SyntaxError as e:
        _print_syntax_error(e, src, args.innermost_first)
        return 2
    finally:
        if args.debug:
            _eprint(f"[DEBUG] {args.file}: events={len(recorder.events)}")
    return 0


def cmd_lex(args) -> int:
    """Tokenize and print one token per line."""
    try:
        if args.text is not None:
            text = args.text
        else:
            text = load_source_text(args.input)
        for i, tok in enumerate(tokenize(text)):
            print(f"{i:03d}: {tok.symbol.name:<18} {tok.text!r}  @{tok.line}:{tok.col}")
        return 0
    except LexicalError as e:
        _eprint("[LEX ERROR]", str(e))
        return 2
    except OSError as e:
        _eprint("[ERROR]", type(e).__name__, str(e))
        return 2

# ------------------------------
# entry point
# ------------------------------

def main(argv: Optional[list[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="descentc", description="descent syntax checker CLI")
    sub = ap.add_subparsers(dest="cmd", required=True)

    p_check = sub.add_parser("check", help="check program files for syntax errors")
    p_check.add_argument("files", nargs="+", help="program source files")
    p_check.add_argument("--innermost-first", action="store_true",
                         help="print the error chain starting from the innermost rule")
    p_check.add_argument("-D", "--debug", action="store_true", help="print debug details to stderr")
    p_check.set_defaults(func=cmd_check)

    p_trace = sub.add_parser("trace", help="print the derivation trace of one file")
    p_trace.add_argument("file", help="program source file")
    p_trace.add_argument("--innermost-first", action="store_true",
                         help="print the error chain starting from the innermost rule")
    p_trace.add_argument("-D", "--debug", action="store_true", help="print debug details to stderr")
    p_trace.set_defaults(func=cmd_trace)

    p_lex = sub.add_parser("lex", help="tokenize input and list the tokens")
    src_group = p_lex.add_mutually_exclusive_group(required=True)
    src_group.add_argument("--text", help="program text given directly")
    src_group.add_argument("--input", help="program source file")
    p_lex.set_defaults(func=cmd_lex)

    args = ap.parse_args(argv)
    return int(args.func(args))

if __name__ == "__main__":
    sys.exit(main())
