from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal, Union

if TYPE_CHECKING:
    from .errors import ClassDiagramError

# ============================================================================
# Class diagram types
#
# Models the parsed representation of a Mermaid class diagram. Everything the
# serializer needs to reproduce the source faithfully (notation style,
# backtick escaping, encounter order) is stored explicitly on the model.
# ============================================================================

# "" is the explicit "no symbol written" state, distinct from public
Visibility = Literal["+", "-", "#", "~", ""]


# How a typed element was written:
#   prefix   int age / void run()
#   postfix  age: int / run() void
#   none     age (no type at all)
TypeNotation = Literal["prefix", "postfix", "none"]

Direction = Literal["TB", "TD", "BT", "LR", "RL"]

RelationshipType = Literal[
    "inheritance",   # A <|-- B   (solid line, hollow triangle)
    "composition",   # A *-- B    (solid line, filled diamond)
    "aggregation",   # A o-- B    (solid line, hollow diamond)
    "association",   # A --> B    (solid line, open arrow)
    "dependency",    # A ..> B    (dashed line, open arrow)
    "realization",   # A ..|> B   (dashed line, hollow triangle)
    "link",          # A -- B     (solid line, no marker)
    "dashed_link",   # A .. B     (dashed line, no marker)
]

MarkerAt = Literal["from", "to"]

# Separator between namespace path segments and the class name
QUALIFIER = "::"


def qualify(namespace: str, name: str) -> str:
    """Join a namespace path and a simple name into a qualified id."""
    return f"{namespace}{QUALIFIER}{name}" if namespace else name


@dataclass(slots=True)
class MethodParameter:
    """A single parameter in a method signature."""

    name: str
    # Type as written (e.g., "int", "List~String~"); None when omitted
    type: str | None = None
    notation: TypeNotation = "none"


@dataclass(slots=True)
class ClassAttribute:
    """A field of a class."""

    # Visibility: + public, - private, # protected, ~ package, "" none
    visibility: Visibility
    name: str
    type: str | None = None
    notation: TypeNotation = "none"
    # Trailing "$" classifier (underlined in UML)
    is_static: bool = False


@dataclass(slots=True)
class ClassMethod:
    """A method of a class."""

    visibility: Visibility
    name: str
    parameters: list[MethodParameter] = field(default_factory=list)
    return_type: str | None = None
    # prefix: "void run()", postfix: "run() void"
    return_notation: TypeNotation = "none"
    # Trailing "$" classifier
    is_static: bool = False
    # Trailing "*" classifier (italic in UML)
    is_abstract: bool = False


ClassMember = Union[ClassAttribute, ClassMethod]


@dataclass(slots=True)
class ClassNote:
    """A note, either free-standing or attached to a class."""

    # Raw note text, kept verbatim
    text: str
    # Qualified id of the class the note is attached to
    target: str | None = None


@dataclass(slots=True)
class ClassNode:
    """A class definition in the diagram."""

    # Qualified id, e.g. "Animals::Dog" (equals name at the top level)
    id: str
    # Simple name as written (backticks stripped)
    name: str
    # Enclosing namespace path, "" for the top level
    namespace: str = ""
    # Whether the name was written in backticks
    escaped: bool = False
    # Generic type parameter from `class Square~Shape~`
    generic: str | None = None
    # Fields and methods in declaration order
    members: list[ClassMember] = field(default_factory=list)
    # Notes attached with `note for`
    notes: list[ClassNote] = field(default_factory=list)

    @property
    def attributes(self) -> list[ClassAttribute]:
        return [m for m in self.members if isinstance(m, ClassAttribute)]

    @property
    def methods(self) -> list[ClassMethod]:
        return [m for m in self.members if isinstance(m, ClassMethod)]


@dataclass(slots=True)
class ClassRelationship:
    """A relationship between two classes."""

    # Qualified ids of both endpoints, in the order they were written
    from_: str
    to: str
    type: RelationshipType
    # Which end of the relationship line has the UML marker (triangle, diamond, arrow).
    # Determined by the arrow syntax direction:
    #   - Prefix markers like `<|--`, `*--`, `o--`, `<--` -> 'from'
    #   - Suffix markers like `--|>`, `--*`, `--o`, `-->` -> 'to'
    #   - Plain links `--` and `..` -> None
    marker_at: MarkerAt | None
    # Label on the relationship line
    label: str | None = None
    # Cardinality at the "from" end (e.g., "1", "*", "0..1")
    from_cardinality: str | None = None
    # Cardinality at the "to" end
    to_cardinality: str | None = None


@dataclass(slots=True)
class ClassNamespace:
    """A namespace grouping of classes and nested namespaces."""

    name: str
    # Qualified path, e.g. "A::B"; "" for the diagram's top level
    path: str = ""
    escaped: bool = False
    # Directly contained classes, in declaration order
    class_ids: list[str] = field(default_factory=list)
    # Directly nested namespaces, in declaration order
    namespace_ids: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ClassDiagram:
    """Parsed class diagram -- logical structure from mermaid text."""

    # Raw frontmatter between the `---` delimiters, kept verbatim
    frontmatter: str | None = None
    direction: Direction | None = None
    # Top-level scope
    root: ClassNamespace = field(default_factory=lambda: ClassNamespace(name=""))
    # All named namespaces, keyed by path
    namespaces: dict[str, ClassNamespace] = field(default_factory=dict)
    # All classes, keyed by qualified id
    classes: dict[str, ClassNode] = field(default_factory=dict)
    relationships: list[ClassRelationship] = field(default_factory=list)
    # Free-standing notes
    notes: list[ClassNote] = field(default_factory=list)
    # Problems skipped under a lenient ParseOptions policy
    diagnostics: list[ClassDiagramError] = field(
        default_factory=list, compare=False, repr=False
    )

    def namespace(self, path: str) -> ClassNamespace:
        """Look up a namespace by path ("" is the top level)."""
        if not path:
            return self.root
        return self.namespaces[path]


# ============================================================================
# Parse options
# ============================================================================

ErrorPolicy = Literal["raise", "skip"]


@dataclass(slots=True)
class ParseOptions:
    """Options controlling how the parser reacts to bad input."""

    # "raise" aborts on the first malformed line; "skip" logs it, records it
    # in ClassDiagram.diagnostics and continues with the next line
    syntax_errors: ErrorPolicy = "raise"
    # Policy for recognized-but-unsupported constructs (annotations,
    # two-way relationships, lollipops, styling)
    unsupported: ErrorPolicy = "raise"
    # Maximum namespace nesting depth
    max_namespace_depth: int = 32

    def __post_init__(self) -> None:
        for name in ("syntax_errors", "unsupported"):
            value = getattr(self, name)
            if value not in ("raise", "skip"):
                raise ValueError(f'{name} must be "raise" or "skip", got {value!r}')
        if self.max_namespace_depth < 1:
            raise ValueError(
                f"max_namespace_depth must be at least 1, got {self.max_namespace_depth}"
            )
