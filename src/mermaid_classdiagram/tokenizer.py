from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from parsimonious.exceptions import IncompleteParseError, ParseError
from parsimonious.expressions import Expression
from parsimonious.nodes import Node, NodeVisitor

from .errors import DiagramSyntaxError
from .grammar import CLASS_DIAGRAM_GRAMMAR, EXPECTED_CONSTRUCTS
from .types import (
    ClassAttribute,
    ClassMember,
    ClassMethod,
    Direction,
    MethodParameter,
)

# ============================================================================
# Class diagram tokenizer
#
# Splits source text into frontmatter, header and statement lines, then
# matches every line against the PEG grammar and folds the parse tree into a
# flat statement token:
#
#   ---                       frontmatter (kept verbatim)
#   title: Animals
#   ---
#   classDiagram              header (mandatory)
#   direction LR              DirectionStmt
#   namespace Zoo {           NamespaceOpen
#   class Animal {            ClassStmt(opens_block=True)
#     +String name            MemberStmt(target=None)
#   }                         BlockClose
#   Animal : +eat() void      MemberStmt
#   Animal <|-- Dog : is      RelationStmt
#   note for Dog "woof"       NoteStmt
#   class A["x"] {            UnsupportedStmt(opens_block=True)
#   %% comment                (dropped)
# ============================================================================


@dataclass(slots=True, frozen=True)
class SourceLine:
    """One physical line of the source, numbered from 1."""

    number: int
    text: str

    @property
    def content(self) -> str:
        return self.text.strip()

    @property
    def indent(self) -> int:
        return len(self.text) - len(self.text.lstrip())


@dataclass(slots=True)
class SourceDocument:
    frontmatter: str | None
    header: SourceLine
    # Non-blank lines after the header
    lines: list[SourceLine]


# ============================================================================
# Statement tokens
# ============================================================================


@dataclass(slots=True, frozen=True)
class Identifier:
    # Text as written, backticks stripped
    text: str
    escaped: bool = False


@dataclass(slots=True, frozen=True)
class QualifiedName:
    """A class reference such as `Dog` or `Zoo::Mammals::Dog`."""

    parts: tuple[Identifier, ...]

    @property
    def name(self) -> Identifier:
        return self.parts[-1]

    @property
    def namespace_parts(self) -> tuple[Identifier, ...]:
        return self.parts[:-1]

    @property
    def is_qualified(self) -> bool:
        return len(self.parts) > 1


@dataclass(slots=True)
class DirectionStmt:
    direction: Direction


@dataclass(slots=True)
class NamespaceOpen:
    name: Identifier


@dataclass(slots=True)
class BlockClose:
    pass


@dataclass(slots=True)
class ClassStmt:
    ref: QualifiedName
    generic: str | None = None
    # True for `class Name {` (members follow on the next lines)
    opens_block: bool = False


@dataclass(slots=True)
class MemberStmt:
    # None inside a class body block
    target: QualifiedName | None
    member: ClassMember


@dataclass(slots=True)
class RelationStmt:
    left: QualifiedName
    right: QualifiedName
    arrow: str
    left_cardinality: str | None = None
    right_cardinality: str | None = None
    label: str | None = None


@dataclass(slots=True)
class NoteStmt:
    text: str
    target: QualifiedName | None = None


@dataclass(slots=True)
class UnsupportedStmt:
    construct: str
    opens_block: bool = False


Statement = Union[
    DirectionStmt,
    NamespaceOpen,
    BlockClose,
    ClassStmt,
    MemberStmt,
    RelationStmt,
    NoteStmt,
    UnsupportedStmt,
]


# ============================================================================
# Source splitting
# ============================================================================

FRONTMATTER_DELIMITER = "---"


def split_source(text: str) -> SourceDocument:
    """Separate the frontmatter block and the header from the statements.

    The frontmatter, when present, must start on the very first line.
    """
    raw_lines = text.splitlines()
    index = 0
    frontmatter: str | None = None

    if raw_lines and raw_lines[0].rstrip() == FRONTMATTER_DELIMITER:
        for end in range(1, len(raw_lines)):
            if raw_lines[end].rstrip() == FRONTMATTER_DELIMITER:
                frontmatter = "\n".join(raw_lines[1:end])
                index = end + 1
                break
        else:
            raise DiagramSyntaxError(
                "unterminated frontmatter block",
                line=1,
                column=1,
                text=raw_lines[0],
                expected="a closing '---' line",
            )

    header: SourceLine | None = None
    while index < len(raw_lines):
        line = SourceLine(index + 1, raw_lines[index])
        index += 1
        if not line.content or line.content.startswith("%%"):
            continue
        try:
            CLASS_DIAGRAM_GRAMMAR["header"].parse(line.content)
        except ParseError:
            raise DiagramSyntaxError(
                f"expected a class diagram, found {line.content!r}",
                line=line.number,
                column=line.indent + 1,
                text=line.text,
                expected=EXPECTED_CONSTRUCTS["header"],
            ) from None
        header = line
        break

    if header is None:
        raise DiagramSyntaxError(
            "missing 'classDiagram' header",
            line=max(len(raw_lines), 1),
            column=1,
            expected=EXPECTED_CONSTRUCTS["header"],
        )

    lines = [
        SourceLine(number, raw)
        for number, raw in enumerate(raw_lines[index:], start=index + 1)
        if raw.strip()
    ]
    return SourceDocument(frontmatter=frontmatter, header=header, lines=lines)


# ============================================================================
# Line matching
# ============================================================================


def parse_statement(line: SourceLine) -> Statement | None:
    """Tokenize a top-level or namespace-level line. Comments yield None."""
    return _match(CLASS_DIAGRAM_GRAMMAR["statement"], line)


def parse_body_line(line: SourceLine) -> Statement | None:
    """Tokenize a line inside a `class Name { ... }` block."""
    return _match(CLASS_DIAGRAM_GRAMMAR["body_line"], line)


def _match(rule: Expression, line: SourceLine) -> Statement | None:
    try:
        tree = rule.parse(line.content)
    except ParseError as err:
        raise _syntax_error(err, line) from None
    return _StatementVisitor().visit(tree)


def _syntax_error(err: ParseError, line: SourceLine) -> DiagramSyntaxError:
    content = line.content
    pos = min(err.pos, len(content))
    rule_name = getattr(err.expr, "name", "") or ""
    expected = EXPECTED_CONSTRUCTS.get(rule_name, rule_name or None)

    if isinstance(err, IncompleteParseError):
        message = f"unexpected trailing text {content[pos:]!r}"
    elif pos >= len(content):
        message = "unexpected end of line"
    else:
        snippet = content[pos:pos + 20]
        message = f"unexpected {snippet!r}"

    return DiagramSyntaxError(
        message,
        line=line.number,
        column=line.indent + pos + 1,
        text=line.text,
        expected=expected,
    )


def _optional(value):
    """Unwrap the result of an `x?` term: the visited child, or None."""
    return value[0] if isinstance(value, list) else None


def _repeated(value) -> list:
    """Unwrap the result of an `x*` term: a list of visited children."""
    return value if isinstance(value, list) else []


class _StatementVisitor(NodeVisitor):
    """Folds a statement parse tree into a Statement token."""

    def generic_visit(self, node: Node, visited_children: list):
        return visited_children or node

    # --- choices that just pass their winning alternative through ---

    def visit_statement(self, node, visited_children):
        return visited_children[0]

    visit_body_line = visit_statement
    visit_unsupported_stmt = visit_statement
    visit_class_label = visit_statement
    visit_class_body = visit_statement
    visit_member_core = visit_statement
    visit_method_shape = visit_statement
    visit_return_type = visit_statement

    # --- plain statements ---

    def visit_comment(self, node, visited_children):
        return None

    def visit_block_close(self, node, visited_children):
        return BlockClose()

    def visit_direction_stmt(self, node, visited_children):
        _, _, direction, _ = visited_children
        return DirectionStmt(direction=direction)

    def visit_direction_value(self, node, visited_children):
        return node.text

    def visit_namespace_open(self, node, visited_children):
        _, _, name, _, _, _ = visited_children
        return NamespaceOpen(name=name)

    def visit_class_stmt(self, node, visited_children):
        _, _, ref, generic, _, body, _ = visited_children
        return ClassStmt(
            ref=ref,
            generic=_optional(generic),
            opens_block=_optional(body) == "open",
        )

    def visit_empty_body(self, node, visited_children):
        return "empty"

    def visit_block_open(self, node, visited_children):
        return "open"

    def visit_generic(self, node, visited_children):
        return node.text[1:-1]

    def visit_note_stmt(self, node, visited_children):
        _, _, target, text, _ = visited_children
        return NoteStmt(text=text, target=_optional(target))

    def visit_note_target(self, node, visited_children):
        return visited_children[2]

    def visit_note_text(self, node, visited_children):
        return node.text[1:-1]

    # --- relationships ---

    def visit_relation_stmt(self, node, visited_children):
        left, _, left_card, arrow, _, right_card, right, label, _ = visited_children
        return RelationStmt(
            left=left,
            right=right,
            arrow=arrow,
            left_cardinality=_optional(left_card),
            right_cardinality=_optional(right_card),
            label=_optional(label),
        )

    def visit_spaced_cardinality(self, node, visited_children):
        return visited_children[0]

    def visit_cardinality(self, node, visited_children):
        return node.text[1:-1]

    def visit_relation_arrow(self, node, visited_children):
        return node.text

    def visit_relation_label(self, node, visited_children):
        return visited_children[3]

    def visit_label_text(self, node, visited_children):
        return node.text

    # --- members ---

    def visit_member_stmt(self, node, visited_children):
        target, _, _, _, member, _ = visited_children
        return MemberStmt(target=target, member=member)

    def visit_member_line(self, node, visited_children):
        member, _ = visited_children
        return MemberStmt(target=None, member=member)

    def visit_member(self, node, visited_children):
        visibility, member = visited_children
        member.visibility = _optional(visibility) or ""
        return member

    def visit_visibility(self, node, visited_children):
        return node.text

    def visit_method(self, node, visited_children):
        method, classifier = visited_children
        classifier = _optional(classifier) or ""
        method.is_static = "$" in classifier
        method.is_abstract = "*" in classifier
        return method

    def visit_method_classifier(self, node, visited_children):
        return node.text

    def visit_prefix_method(self, node, visited_children):
        return_type, _, name, parameters = visited_children
        return ClassMethod(
            visibility="",
            name=name,
            parameters=parameters,
            return_type=return_type,
            return_notation="prefix",
        )

    def visit_postfix_method(self, node, visited_children):
        name, parameters, return_type = visited_children
        return_type = _optional(return_type)
        return ClassMethod(
            visibility="",
            name=name,
            parameters=parameters,
            return_type=return_type,
            return_notation="postfix" if return_type else "none",
        )

    def visit_colon_return(self, node, visited_children):
        return visited_children[3]

    def visit_spaced_return(self, node, visited_children):
        return visited_children[1]

    def visit_attribute(self, node, visited_children):
        attribute, static = visited_children
        attribute.is_static = _optional(static) is not None
        return attribute

    def visit_attribute_shape(self, node, visited_children):
        shape = visited_children[0]
        if isinstance(shape, str):
            return ClassAttribute(visibility="", name=shape)
        return shape

    def visit_postfix_attribute(self, node, visited_children):
        name, _, _, _, type_ = visited_children
        return ClassAttribute(visibility="", name=name, type=type_, notation="postfix")

    def visit_prefix_attribute(self, node, visited_children):
        type_, _, name = visited_children
        return ClassAttribute(visibility="", name=name, type=type_, notation="prefix")

    def visit_parameters(self, node, visited_children):
        _, _, parameters, _, _ = visited_children
        return _optional(parameters) or []

    def visit_parameter_list(self, node, visited_children):
        first, rest = visited_children
        # each repetition is [OWS, ",", OWS, parameter]
        return [first] + [item[3] for item in _repeated(rest)]

    def visit_parameter(self, node, visited_children):
        shape = visited_children[0]
        if isinstance(shape, str):
            return MethodParameter(name=shape)
        return shape

    def visit_postfix_parameter(self, node, visited_children):
        name, _, _, _, type_ = visited_children
        return MethodParameter(name=name, type=type_, notation="postfix")

    def visit_prefix_parameter(self, node, visited_children):
        type_, _, name = visited_children
        return MethodParameter(name=name, type=type_, notation="prefix")

    def visit_member_name(self, node, visited_children):
        return node.text

    def visit_type_expr(self, node, visited_children):
        return node.text

    # --- names ---

    def visit_qualified_name(self, node, visited_children):
        first, rest = visited_children
        # each repetition is ["::", identifier]
        parts = [first] + [item[1] for item in _repeated(rest)]
        return QualifiedName(parts=tuple(parts))

    def visit_identifier(self, node, visited_children):
        text = node.text
        if text.startswith("`"):
            return Identifier(text=text[1:-1], escaped=True)
        return Identifier(text=text)

    # --- unsupported constructs ---

    def visit_annotation_stmt(self, node, visited_children):
        return UnsupportedStmt("annotation")

    visit_body_annotation = visit_annotation_stmt

    def visit_class_annotation(self, node, visited_children):
        # `class A { <<interface>>` leaves the body open
        closed = node.text.rstrip().endswith("}")
        return UnsupportedStmt("class annotation", opens_block=not closed)

    def visit_labelled_block(self, node, visited_children):
        return UnsupportedStmt("class label", opens_block=True)

    def visit_labelled_class(self, node, visited_children):
        return UnsupportedStmt("class label")

    def visit_two_way_relation(self, node, visited_children):
        return UnsupportedStmt("two-way relationship")

    def visit_lollipop_relation(self, node, visited_children):
        return UnsupportedStmt("lollipop interface")

    def visit_style_stmt(self, node, visited_children):
        keyword = node.children[0].text
        return UnsupportedStmt(f"styling directive '{keyword}'")

    def visit_css_shorthand(self, node, visited_children):
        return UnsupportedStmt("css class shorthand ':::'")
