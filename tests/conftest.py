from typing import Callable, List

import pytest

from descent.events import EventKind, ParseEvent, RecordingSink
from descent.grammar.parser import parse_text


def _assert_balanced(events: List[ParseEvent]) -> None:
    stack: List[str] = []
    for ev in events:
        if ev.kind is EventKind.ENTER:
            stack.append(ev.name)
        elif ev.kind is EventKind.EXIT:
            assert stack, f"exit without enter: {ev.name}"
            assert stack.pop() == ev.name
    assert stack == []


@pytest.fixture
def assert_balanced() -> Callable[[List[ParseEvent]], None]:
    """Checks that enter/exit events nest like a stack."""
    return _assert_balanced


@pytest.fixture
def record() -> Callable[[str], RecordingSink]:
    """Parse text and return the recording sink, even when the parse fails."""
    def _record(text: str) -> RecordingSink:
        sink = RecordingSink()
        try:
            parse_text(text, sink)
        except SyntaxError:
            pass
        return sink
    return _record


@pytest.fixture
def program_file(tmp_path):
    def _write(text: str, name: str = "prog.txt"):
        p = tmp_path / name
        p.write_text(text, encoding="utf-8")
        return p
    return _write
