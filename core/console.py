"""Console output channel with the header / numbered-list layout."""

import sys
from typing import Iterable, Optional, TextIO


class Console:
    """
    Writes command output to a text stream.

    Without an explicit stream, ``sys.stdout`` is looked up on every write so
    that redirection (and pytest's capsys) is honoured.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream or sys.stdout

    def line(self, text: str = ""):
        print(text, file=self.stream)

    def blank(self):
        self.line()

    def header(self, text: str):
        self.line(text)
        self.line("-" * len(text))

    def numbered(self, items: Iterable[str]) -> int:
        count = 0
        for count, item in enumerate(items, 1):
            self.line(f"{count}. {item}")
        return count

    def block(self, title: str, items: Iterable[str]):
        """Header, numbered items and the trailing blank line."""
        self.header(title)
        self.numbered(items)
        self.blank()
