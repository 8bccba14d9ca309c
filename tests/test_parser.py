"""
Tests for the recursive-descent syntax analyser.
"""

import pytest

from descent.errors import LexicalError, ParseError, error_chain, innermost
from descent.events import EventKind, EventSink, ParseEvent, RecordingSink
from descent.grammar.parser import SyntaxAnalyser, check_file, load_source_text, parse_text
from descent.grammar.symbols import Nonterminal, Symbol
from descent.lex import Token, TokenSource, TokenStream, tokenize


def enters(sink):
    return [e.name for e in sink.events if e.kind is EventKind.ENTER]


def terminal_texts(sink):
    return [t.text for t in sink.terminals()]


def parse_error(text):
    with pytest.raises(ParseError) as ei:
        parse_text(text)
    return ei.value


class TestValidPrograms:

    def test_single_assignment_event_sequence(self):
        sink = parse_text("begin x := 1 end")

        assert sink.succeeded
        E, X, T = EventKind.ENTER, EventKind.EXIT, EventKind.TERMINAL
        got = [(e.kind, e.name if e.kind is not T else e.token.text) for e in sink.events]
        assert got == [
            (E, "<statement part>"),
            (T, "begin"),
            (E, "<statement list>"),
            (E, "<statement>"),
            (E, "<assignment statement>"),
            (T, "x"),
            (T, ":="),
            (E, "<expression>"),
            (E, "<term>"),
            (E, "<factor>"),
            (T, "1"),
            (X, "<factor>"),
            (X, "<term>"),
            (X, "<expression>"),
            (X, "<assignment statement>"),
            (X, "<statement>"),
            (X, "<statement list>"),
            (T, "end"),
            (X, "<statement part>"),
            (T, ""),
        ]

    def test_if_statement_nests_condition_and_operator(self, assert_balanced):
        sink = parse_text("begin if x > 1 then y := 2 end if end")

        assert sink.succeeded
        assert_balanced(sink.events)
        names = enters(sink)
        assert names.index("<if statement>") < names.index("<condition>")
        assert names.index("<condition>") < names.index("<conditional operator>")
        assert names.index("<conditional operator>") < names.index("<assignment statement>")

    def test_if_else(self):
        sink = parse_text('begin if a /= "s" then b := "t" else b := (1 + 2) * c end if end')
        assert sink.succeeded
        assert enters(sink).count("<statement list>") == 3

    def test_statement_list_is_flat(self, assert_balanced):
        sink = parse_text("begin x := 1; y := 2; z := 3 end")

        assert sink.succeeded
        assert_balanced(sink.events)
        assert enters(sink).count("<statement list>") == 1
        assert enters(sink).count("<statement>") == 3
        assert terminal_texts(sink).count(";") == 2

    def test_while_statement(self):
        sink = parse_text("begin while x < 10 loop x := x + 1 end loop end")
        assert sink.succeeded
        assert "<while statement>" in enters(sink)

    def test_until_statement_labels_match(self, assert_balanced):
        sink = parse_text("begin do x := x - 1 until x = 0 end")

        assert sink.succeeded
        assert_balanced(sink.events)
        exits = [e.name for e in sink.events if e.kind is EventKind.EXIT]
        assert "<until statement>" in exits

    def test_for_statement(self):
        sink = parse_text(
            "begin\n"
            "  for (i := 0; i < 10; i := i + 1) do\n"
            "    call show(i)\n"
            "  end loop\n"
            "end\n"
        )
        assert sink.succeeded
        assert enters(sink).count("<assignment statement>") == 2
        assert "<procedure statement>" in enters(sink)

    def test_argument_list_is_flat(self):
        sink = parse_text("begin call p(a, b, c) end")
        assert enters(sink).count("<argument list>") == 1
        assert terminal_texts(sink)[3:10] == ["(", "a", ",", "b", ",", "c", ")"]

    def test_expression_operators_in_order(self):
        sink = parse_text("begin r := a + b * c - d / (e - 1) end")
        assert terminal_texts(sink)[3:-2] == [
            "a", "+", "b", "*", "c", "-", "d", "/", "(", "e", "-", "1", ")",
        ]
        assert enters(sink).count("<expression>") == 2

    @pytest.mark.parametrize("operand", ["y", "1", '"text"'])
    def test_condition_operands(self, operand):
        sink = parse_text(f"begin while x >= {operand} loop x := 1 end loop end")
        assert sink.succeeded

    @pytest.mark.parametrize("op", [">", ">=", "=", "/=", "<", "<="])
    def test_conditional_operators(self, op):
        assert parse_text(f"begin if a {op} b then c := d end if end").succeeded

    def test_string_assignment(self):
        sink = parse_text('begin s := "hi" end')
        assert "<expression>" not in enters(sink)

    def test_nested_statements(self, assert_balanced):
        sink = parse_text(
            "begin\n"
            "  while i < n loop\n"
            "    if a = b then\n"
            "      do c := c + 1 until c > 3\n"
            "    else\n"
            "      call log(a, b)\n"
            "    end if;\n"
            "    i := i + 1\n"
            "  end loop\n"
            "end\n"
        )
        assert sink.succeeded
        assert_balanced(sink.events)

    def test_engine_over_prebuilt_tokens(self):
        toks = [
            Token(Symbol.BEGIN, "begin", 1),
            Token(Symbol.CALL, "call", 2),
            Token(Symbol.IDENTIFIER, "p", 2),
            Token(Symbol.LEFT_PARENTHESIS, "(", 2),
            Token(Symbol.IDENTIFIER, "a", 2),
            Token(Symbol.RIGHT_PARENTHESIS, ")", 2),
            Token(Symbol.END, "end", 3),
        ]
        sink = RecordingSink()
        SyntaxAnalyser(TokenStream(toks), sink).parse()
        assert sink.succeeded
        assert sink.terminals()[:-1] == toks

    def test_default_sink(self):
        SyntaxAnalyser(TokenStream(tokenize("begin x := 1 end"))).parse()

    def test_check_file(self, program_file):
        path = program_file("begin\n  x := 1\nend\n")
        assert check_file(path).succeeded

    def test_load_source_text_normalizes_file(self, tmp_path):
        path = tmp_path / "dos.prog"
        path.write_bytes(b"\xef\xbb\xbfbegin\r\n  x := 1\rend\r\n")
        assert load_source_text(path) == "begin\n  x := 1\nend\n"
        sink = check_file(path)
        assert [t.line for t in sink.terminals()[:-1]] == [1, 2, 2, 2, 3]


class TestSyntaxErrors:

    def test_missing_expression(self):
        err = parse_error("begin x := end")

        chain = error_chain(err)
        assert all(isinstance(e, ParseError) for e in chain)
        assert all(e.token.text == "end" for e in chain)
        assert any(
            "expected identifier, number constant, or <expression> but found 'end'" in str(e)
            for e in chain
        )
        assert str(innermost(err)) == (
            "Syntax error at line 1 in <input>: "
            "expected identifier, number constant, or '(' but found 'end'."
        )

    def test_error_chain_outermost_to_innermost(self):
        err = parse_error("begin x := end")

        chain = error_chain(err)
        assert len(chain) == 8
        assert "<statement list> between 'begin' and 'end'" in str(chain[0])
        assert "expected <statement list>" in str(chain[1])
        assert "<expression> or string constant" in str(chain[3])

    def test_error_reports_line_of_offending_token(self):
        err = parse_error("begin\n  x :=\nend")
        assert innermost(err).line == 3
        assert str(err).startswith("Syntax error at line 3 in <input>:")

    def test_missing_right_parenthesis(self):
        err = parse_error("begin call p(a,b end")
        assert str(innermost(err)) == (
            "Syntax error at line 1 in <input>: expected ')' but found 'end'."
        )

    def test_missing_then(self):
        err = parse_error("begin if x > 1 y := 2 end if end")
        assert "expected 'then' but found 'y'" in str(innermost(err))

    def test_bad_conditional_operator(self):
        err = parse_error("begin if x := 1 then y := 2 end if end")
        assert "expected > , >= , = , /= , < or <= but found ':='" in str(innermost(err))

    def test_bad_condition_operand(self):
        err = parse_error("begin while x > ( loop y := 1 end loop end")
        assert "identifier, number constant or string constant but found '('" in str(innermost(err))

    def test_no_statement_matches(self):
        err = parse_error("begin end")
        assert "expected <assignment>, <if>, <while>, <procedure>, <until>, or <for> but found 'end'" in str(innermost(err))

    def test_string_not_allowed_in_expression(self):
        err = parse_error('begin x := 1 + "s" end')
        assert innermost(err).token.symbol is Symbol.STRING_CONSTANT

    def test_missing_end_at_eof(self):
        err = parse_error("begin x := 1")
        assert str(innermost(err)).endswith("expected 'end' but found end of input.")

    def test_empty_input(self):
        err = parse_error("")
        assert "expected 'begin' but found end of input" in str(innermost(err))

    def test_trailing_tokens_rejected(self):
        err = parse_error("begin x := 1 end y")
        assert "expected 'end of file' but found 'y'" in str(err)

    def test_source_name_in_message(self, program_file):
        path = program_file("begin x := end\n", name="broken.prog")
        with pytest.raises(ParseError, match="broken.prog"):
            check_file(path)

    def test_lexical_error_is_wrapped(self):
        err = parse_error("begin x := 1 @ end")
        assert isinstance(innermost(err), LexicalError)
        assert len(error_chain(err)) > 1

    def test_lexical_error_wrappers_point_at_bad_input(self):
        err = parse_error("begin\n  x :=\n\n  @ end")

        chain = error_chain(err)
        lex = chain[-1]
        assert isinstance(lex, LexicalError)
        assert (lex.line, lex.col, lex.text) == (4, 3, "@")
        for wrapper in chain[:-1]:
            assert wrapper.line == 4
            assert "found '@'" in str(wrapper)
            assert "found ':='" not in str(wrapper)
        assert str(chain[-2]) == (
            "Syntax error at line 4 in <input>: "
            "expected <expression> or string constant but found '@'."
        )

    def test_unterminated_string_wrapper(self):
        err = parse_error('begin\n  s := "abc\nend')
        assert str(err) == (
            "Syntax error at line 2 in <input>: "
            "expected <statement list> between 'begin' and 'end' but found '\"abc'."
        )


class TestInvariants:

    @pytest.mark.parametrize("text", [
        "begin x := end",
        "begin call p(a,b end",
        "begin if x > then y := 1 end if end",
        "begin while x < 1 loop y := 2 end end",
        "begin do x := 1 until end",
        "begin for (i := 0; i < 3 i := 1) do x := 1 end loop end",
    ])
    def test_balance_on_failure(self, text, record, assert_balanced):
        sink = record(text)
        assert not sink.succeeded
        assert_balanced(sink.events)

    def test_determinism(self, record):
        text = "begin if a > 1 then b := (c + end if end"
        first = record(text)
        second = record(text)
        assert first.events == second.events

        with pytest.raises(ParseError) as e1:
            parse_text(text)
        with pytest.raises(ParseError) as e2:
            parse_text(text)
        assert [str(e) for e in error_chain(e1.value)] == [str(e) for e in error_chain(e2.value)]

    def test_terminals_are_input_prefix_on_failure(self, record):
        text = "begin x := 1; y := * 2 end"
        sink = record(text)
        assert terminal_texts(sink) == ["begin", "x", ":=", "1", ";", "y", ":="]

    def test_terminals_are_whole_input_on_success(self):
        text = "begin x := 1; call p(x) end"
        sink = parse_text(text)
        assert sink.terminals() == tokenize(text)

    def test_no_skipped_errors(self):
        err = parse_error("begin a := 1; b := 2; c = 3; d := 4 end")
        tok = innermost(err).token
        assert (tok.symbol, tok.text) == (Symbol.EQUAL, "=")


class _FailingSource(TokenSource):
    def __init__(self, text, fail_after):
        self._tokens = tokenize(text)
        self._fail_after = fail_after
        self._n = 0

    def next_token(self):
        if self._n >= self._fail_after:
            raise OSError("device went away")
        tok = self._tokens[self._n]
        self._n += 1
        return tok


class _SilentSink(EventSink):
    def report_error(self, token, message):
        return None


class TestCollaborators:

    def test_io_error_propagates_unwrapped(self, assert_balanced):
        sink = RecordingSink()
        analyser = SyntaxAnalyser(_FailingSource("begin x := 1 end", 3), sink)
        with pytest.raises(OSError, match="device went away"):
            analyser.parse()
        assert_balanced(sink.events)
        assert not sink.succeeded

    def test_sink_sees_innermost_error(self):
        sink = RecordingSink()
        with pytest.raises(ParseError):
            parse_text("begin call p(a,b end", sink)
        token, message = sink.error
        assert token.text == "end"
        assert "expected ')'" in message

    def test_sink_must_not_return_from_report_error(self):
        with pytest.raises(RuntimeError, match="report_error returned normally"):
            SyntaxAnalyser(TokenStream(tokenize("end")), _SilentSink()).parse()

    def test_events_use_nonterminal_labels(self):
        sink = parse_text("begin x := 1 end")
        labels = {e.name for e in sink.events if e.kind is not EventKind.TERMINAL}
        assert labels <= {nt.value for nt in Nonterminal}
        assert ParseEvent(EventKind.ENTER, Nonterminal.STATEMENT_PART.value) == sink.events[0]
