"""Operator confirmation before anything in the repository changes."""

from __future__ import annotations

import sys
from typing import Optional, TextIO

PROMPT_TEMPLATE = "Are you sure you want to merge branch {name}? [y/n] "
DEFAULT_TOKEN = "y"


class ConfirmationGate:
    """Asks once whether the checked-out branch should be shipped.

    Only the exact affirmative token (after trimming whitespace) approves.
    Empty input, end of input, and anything else decline.
    """

    def __init__(
        self,
        token: str = DEFAULT_TOKEN,
        *,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
    ):
        self.token = token
        self._stdin = stdin
        self._stdout = stdout

    def confirm(self, branch_name: str) -> bool:
        stdin = self._stdin or sys.stdin
        stdout = self._stdout or sys.stdout

        stdout.write(PROMPT_TEMPLATE.format(name=branch_name))
        stdout.flush()
        answer = stdin.readline()
        if not answer:
            # EOF: no line to read
            stdout.write("\n")
            return False
        return answer.strip() == self.token
