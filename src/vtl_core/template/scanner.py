"""Single-character lookahead reader over template text."""

EOF = ""

_CONTEXT_LENGTH = 20


class Scanner:
    """Reads template text one character at a time.

    ``c`` is always the next unconsumed character, or ``EOF`` once the input
    is exhausted. ``line`` is the 1-based line number of ``c``.
    """

    def __init__(self, text: str):
        self._text = text
        self._pos = 0
        self._line = 1

    @property
    def c(self) -> str:
        if self._pos < len(self._text):
            return self._text[self._pos]
        return EOF

    @property
    def line(self) -> int:
        return self._line

    def at_eof(self) -> bool:
        return self._pos >= len(self._text)

    def next(self) -> str:
        """Consume the current character and return the new lookahead."""
        if self._pos < len(self._text):
            if self._text[self._pos] == "\n":
                self._line += 1
            self._pos += 1
        return self.c

    def skip_space(self) -> str:
        while not self.at_eof() and self.c.isspace():
            self.next()
        return self.c

    def next_non_space(self) -> str:
        self.next()
        return self.skip_space()

    def peek(self, offset: int = 1) -> str:
        """Look past the current character without consuming anything."""
        index = self._pos + offset
        if index < len(self._text):
            return self._text[index]
        return EOF

    def error_context(self) -> str:
        """Describe the remaining input for a parse error message.

        Returns:
            Up to 20 remaining characters, followed by ``...`` if more remain,
            or ``EOF`` when nothing remains
        """
        if self.at_eof():
            return "EOF"
        remaining = self._text[self._pos :]
        if len(remaining) > _CONTEXT_LENGTH:
            return remaining[:_CONTEXT_LENGTH] + "..."
        return remaining
