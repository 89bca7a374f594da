from __future__ import annotations

# ============================================================================
# Class diagram errors
#
# Every failure raised by the parser derives from ClassDiagramError, which is
# a ValueError so callers that only guard against bad input keep working.
# ============================================================================


class ClassDiagramError(ValueError):
    """Base class for all class diagram parse failures."""

    kind = "error"

    def __init__(
        self,
        message: str,
        line: int | None = None,
        column: int | None = None,
        text: str | None = None,
        expected: str | None = None,
    ) -> None:
        self.message = message
        # 1-based position in the full source text
        self.line = line
        self.column = column
        # Raw text of the offending line
        self.text = text
        # Nearest construct the grammar was looking for
        self.expected = expected
        super().__init__(self._format())

    def _format(self) -> str:
        where = ""
        if self.line is not None:
            where = f"line {self.line}"
            if self.column is not None:
                where += f", column {self.column}"
            where += ": "
        hint = f" (expected {self.expected})" if self.expected else ""
        return f"{where}{self.message}{hint}"


class DiagramSyntaxError(ClassDiagramError):
    """The grammar could not match the input at a position."""

    kind = "syntax"


class SemanticConflictError(ClassDiagramError):
    """Structurally valid input that contradicts an earlier declaration."""

    kind = "semantic_conflict"


class DuplicateNamespaceConflict(SemanticConflictError):
    """Two declarations of the same class or member in one namespace disagree."""


class UnsupportedConstructError(ClassDiagramError):
    """A recognized Mermaid construct this library does not model."""

    kind = "unsupported"

    def __init__(
        self,
        construct: str,
        line: int | None = None,
        column: int | None = None,
        text: str | None = None,
    ) -> None:
        self.construct = construct
        super().__init__(f"{construct} is not supported", line, column, text)
