from __future__ import annotations

import io

import pytest

from branchship.confirmation import ConfirmationGate


def _gate(answer: str, token: str = "y") -> tuple[ConfirmationGate, io.StringIO]:
    out = io.StringIO()
    return ConfirmationGate(token, stdin=io.StringIO(answer), stdout=out), out


def test_prompt_names_branch():
    gate, out = _gate("y\n")
    assert gate.confirm("feature/login") is True
    assert out.getvalue() == "Are you sure you want to merge branch feature/login? [y/n] "


@pytest.mark.parametrize("answer", ["y\n", "y", "  y  \n", "\ty\r\n"])
def test_affirmative_after_trim(answer):
    gate, _ = _gate(answer)
    assert gate.confirm("feature") is True


@pytest.mark.parametrize("answer", ["n\n", "\n", "Y\n", "yes\n", "yy\n", "no\n", "y n\n"])
def test_anything_else_declines(answer):
    gate, _ = _gate(answer)
    assert gate.confirm("feature") is False


def test_end_of_input_declines():
    gate, out = _gate("")
    assert gate.confirm("feature") is False
    assert out.getvalue().endswith("\n")


def test_only_one_line_is_read():
    stdin = io.StringIO("n\ny\n")
    gate = ConfirmationGate(stdin=stdin, stdout=io.StringIO())
    assert gate.confirm("feature") is False
    assert stdin.readline() == "y\n"


def test_custom_token():
    gate, _ = _gate("ship\n", token="ship")
    assert gate.confirm("feature") is True
    gate, _ = _gate("y\n", token="ship")
    assert gate.confirm("feature") is False
