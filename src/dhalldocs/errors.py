from __future__ import annotations

from dataclasses import dataclass

from .spans import Span


@dataclass(slots=True)
class ParseError(Exception):
    span: Span
    message: str
    hint: str | None = None

    def __str__(self) -> str:
        base = f"{self.span.format()}: {self.message}"
        if self.hint:
            return f"{base}\nhint: {self.hint}"
        return base


@dataclass(slots=True)
class InternalError(Exception):
    """An invariant of the renderer or its collaborators was violated.

    Raised instead of producing corrupted output: malformed or overlapping
    spans, spans that run past the text, or formatter output that does not
    parse back.
    """

    message: str
    span: Span | None = None

    def __str__(self) -> str:
        if self.span is not None:
            return f"internal error at {self.span.format()}: {self.message}"
        return f"internal error: {self.message}"
