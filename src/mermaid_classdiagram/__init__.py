"""mermaid-classdiagram: parse Mermaid class diagrams and write them back out."""

from __future__ import annotations

from .types import (
    ClassAttribute,
    ClassDiagram,
    ClassMember,
    ClassMethod,
    ClassNamespace,
    ClassNode,
    ClassNote,
    ClassRelationship,
    Direction,
    MarkerAt,
    MethodParameter,
    ParseOptions,
    RelationshipType,
    TypeNotation,
    Visibility,
)
from .errors import (
    ClassDiagramError,
    DiagramSyntaxError,
    DuplicateNamespaceConflict,
    SemanticConflictError,
    UnsupportedConstructError,
)
from .parser import parse_class_diagram
from .serializer import member_to_string, relationship_to_string, serialize_class_diagram

__all__ = [
    "parse_class_diagram",
    "serialize_class_diagram",
    "member_to_string",
    "relationship_to_string",
    "ParseOptions",
    "ClassDiagram",
    "ClassNode",
    "ClassNamespace",
    "ClassMember",
    "ClassAttribute",
    "ClassMethod",
    "MethodParameter",
    "ClassNote",
    "ClassRelationship",
    "Direction",
    "MarkerAt",
    "RelationshipType",
    "TypeNotation",
    "Visibility",
    "ClassDiagramError",
    "DiagramSyntaxError",
    "SemanticConflictError",
    "DuplicateNamespaceConflict",
    "UnsupportedConstructError",
]
