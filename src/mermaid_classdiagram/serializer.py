from __future__ import annotations

from .grammar import RELATIONSHIP_ARROWS
from .types import (
    QUALIFIER,
    ClassAttribute,
    ClassDiagram,
    ClassMember,
    ClassNamespace,
    ClassNode,
    ClassRelationship,
    MarkerAt,
    MethodParameter,
    RelationshipType,
)

# ============================================================================
# Class diagram serializer
#
# Writes a ClassDiagram back out as Mermaid text:
#
#   ---                        frontmatter, verbatim
#   classDiagram
#   direction LR
#   class Animal               top-level classes
#   Animal : +eat() void       one line per member
#   namespace Zoo {            namespace blocks, two spaces per level
#     class Cage
#   }
#   Zoo::Cage --> Animal       relationships, fully qualified
#   note for Animal "text"     class notes, then free notes
# ============================================================================

INDENT = "  "

# (type, marker side) -> canonical arrow spelling
_ARROWS: dict[tuple[RelationshipType, MarkerAt | None], str] = {
    key: arrow for arrow, key in RELATIONSHIP_ARROWS.items()
}

_UNMARKED: frozenset[str] = frozenset({"link", "dashed_link"})


def serialize_class_diagram(diagram: ClassDiagram) -> str:
    """Render a ClassDiagram as Mermaid class diagram text."""
    lines: list[str] = []

    if diagram.frontmatter is not None:
        lines.append("---")
        if diagram.frontmatter:
            lines.extend(diagram.frontmatter.split("\n"))
        lines.append("---")

    lines.append("classDiagram")
    if diagram.direction is not None:
        lines.append(f"direction {diagram.direction}")

    _write_namespace_body(diagram, diagram.root, 0, lines)

    for rel in diagram.relationships:
        lines.append(relationship_to_string(rel, diagram))

    for node in diagram.classes.values():
        for note in node.notes:
            lines.append(f'note for {_reference(diagram, node.id)} "{note.text}"')
    for note in diagram.notes:
        if note.target is not None:
            lines.append(f'note for {_reference(diagram, note.target)} "{note.text}"')
        else:
            lines.append(f'note "{note.text}"')

    return "\n".join(lines) + "\n"


def _write_namespace_body(
    diagram: ClassDiagram, namespace: ClassNamespace, depth: int, lines: list[str]
) -> None:
    pad = INDENT * depth
    for class_id in namespace.class_ids:
        _write_class(diagram.classes[class_id], pad, lines)

    for path in namespace.namespace_ids:
        child = diagram.namespaces[path]
        lines.append(f"{pad}namespace {_escape(child.name, child.escaped)} {{")
        _write_namespace_body(diagram, child, depth + 1, lines)
        lines.append(f"{pad}}}")


def _write_class(node: ClassNode, pad: str, lines: list[str]) -> None:
    name = _escape(node.name, node.escaped)
    generic = f"~{node.generic}~" if node.generic else ""
    lines.append(f"{pad}class {name}{generic}")
    for member in node.members:
        lines.append(f"{pad}{name} : {member_to_string(member)}")


# ============================================================================
# Members
# ============================================================================


def member_to_string(m: ClassMember) -> str:
    """Convert a class member to Mermaid member syntax, honouring its notation."""
    if isinstance(m, ClassAttribute):
        if m.type is None or m.notation == "none":
            text = m.name
        elif m.notation == "prefix":
            text = f"{m.type} {m.name}"
        else:
            text = f"{m.name}: {m.type}"
        return f"{m.visibility}{text}{'$' if m.is_static else ''}"

    params = ", ".join(_parameter_to_string(p) for p in m.parameters)
    signature = f"{m.name}({params})"
    if m.return_type is None or m.return_notation == "none":
        text = signature
    elif m.return_notation == "prefix":
        text = f"{m.return_type} {signature}"
    else:
        text = f"{signature} {m.return_type}"
    classifiers = ("$" if m.is_static else "") + ("*" if m.is_abstract else "")
    return f"{m.visibility}{text}{classifiers}"


def _parameter_to_string(p: MethodParameter) -> str:
    if p.type is None or p.notation == "none":
        return p.name
    if p.notation == "prefix":
        return f"{p.type} {p.name}"
    return f"{p.name}: {p.type}"


# ============================================================================
# Relationships
# ============================================================================


def relationship_to_string(
    rel: ClassRelationship, diagram: ClassDiagram | None = None
) -> str:
    """Convert a relationship to a Mermaid relationship line.

    With ``diagram``, endpoint names pick up the backtick escaping of the
    classes and namespaces they refer to.
    """
    if rel.type in _UNMARKED:
        marker_at = None
    else:
        marker_at = rel.marker_at or "to"
    arrow = _ARROWS[(rel.type, marker_at)]

    parts = [_reference(diagram, rel.from_)]
    if rel.from_cardinality is not None:
        parts.append(f'"{rel.from_cardinality}"')
    parts.append(arrow)
    if rel.to_cardinality is not None:
        parts.append(f'"{rel.to_cardinality}"')
    parts.append(_reference(diagram, rel.to))

    text = " ".join(parts)
    if rel.label:
        text += f" : {rel.label}"
    return text


# ============================================================================
# Names
# ============================================================================


def _escape(name: str, escaped: bool) -> str:
    return f"`{name}`" if escaped else name


def _reference(diagram: ClassDiagram | None, class_id: str) -> str:
    """Fully qualified, escaped reference to a class id."""
    node = diagram.classes.get(class_id) if diagram is not None else None
    if node is None:
        return class_id

    parts: list[str] = []
    if node.namespace:
        path = ""
        for segment in node.namespace.split(QUALIFIER):
            path = f"{path}{QUALIFIER}{segment}" if path else segment
            namespace = diagram.namespaces.get(path)
            escaped = namespace.escaped if namespace is not None else False
            parts.append(_escape(segment, escaped))
    parts.append(_escape(node.name, node.escaped))
    return QUALIFIER.join(parts)
