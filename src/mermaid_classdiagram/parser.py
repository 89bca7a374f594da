from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from .errors import (
    ClassDiagramError,
    DiagramSyntaxError,
    DuplicateNamespaceConflict,
    UnsupportedConstructError,
)
from .grammar import RELATIONSHIP_ARROWS
from .tokenizer import (
    BlockClose,
    ClassStmt,
    DirectionStmt,
    Identifier,
    MemberStmt,
    NamespaceOpen,
    NoteStmt,
    QualifiedName,
    RelationStmt,
    SourceLine,
    Statement,
    UnsupportedStmt,
    parse_body_line,
    parse_statement,
    split_source,
)
from .types import (
    ClassAttribute,
    ClassDiagram,
    ClassMember,
    ClassNamespace,
    ClassNode,
    ClassNote,
    ClassRelationship,
    ParseOptions,
    qualify,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Class diagram parser
#
# Parses Mermaid classDiagram syntax into a ClassDiagram structure.
#
# Supported syntax:
#   class Animal                  (declaration)
#   class Box~T~                  (generic)
#   class Animal { +String name } (body block, one member per line)
#   Animal : +eat() void          (one-line member)
#   Animal <|-- Dog               (inheritance)
#   Car *-- Engine                (composition)
#   Car o-- Wheel                 (aggregation)
#   A --> B                       (association)
#   A ..> B                       (dependency)
#   A ..|> B                      (realization)
#   A "1" --> "*" B : label       (with cardinality + label)
#   namespace Zoo { class A }     (nested to any depth)
#   Zoo::Cage --> Animal          (qualified reference)
#   note for Animal "text"
# ============================================================================


def parse_class_diagram(text: str, options: ParseOptions | None = None) -> ClassDiagram:
    """Parse Mermaid class diagram text.

    Expects an optional `---` frontmatter block followed by the
    "classDiagram" header. Raises a ClassDiagramError subclass on the first
    problem unless ``options`` asks for that kind of problem to be skipped.
    """
    options = options or ParseOptions()
    document = split_source(text)

    builder = _DiagramBuilder(options)
    builder.diagram.frontmatter = document.frontmatter
    for line in document.lines:
        builder.feed(line)
    builder.finish()
    return builder.diagram


@dataclass(slots=True)
class _Scope:
    """An open `{ ... }` block."""

    kind: Literal["namespace", "class", "skipped"]
    # Namespace path, class id, or the skipped construct
    path: str
    # Line that opened the block
    line: SourceLine


class _DiagramBuilder:
    """Applies statement tokens, one line at a time, to a ClassDiagram."""

    def __init__(self, options: ParseOptions) -> None:
        self.options = options
        self.diagram = ClassDiagram()
        self._scopes: list[_Scope] = []
        # Namespace path -> (parent path, nesting depth); "" is the top level
        self._parents: dict[str, str] = {}
        self._depths: dict[str, int] = {"": 0}

    # ========================================================================
    # Line driver
    # ========================================================================

    def feed(self, line: SourceLine) -> None:
        try:
            statement = self._tokenize(line)
            if statement is not None:
                self._apply(statement, line)
        except DiagramSyntaxError as err:
            if self.options.syntax_errors == "raise":
                raise
            self._skip(err)
        except UnsupportedConstructError as err:
            if self.options.unsupported == "raise":
                raise
            self._skip(err)

    def finish(self) -> None:
        if not self._scopes:
            return
        scope = self._scopes[-1]
        if scope.kind == "skipped":
            message = f"{scope.path} block is never closed"
        else:
            what = "namespace" if scope.kind == "namespace" else "class body"
            message = f"{what} '{scope.path}' is never closed"
        err = self._syntax_error(scope.line, message, expected="'}'")
        if self.options.syntax_errors == "raise":
            raise err
        self._skip(err)

    def _tokenize(self, line: SourceLine) -> Statement | None:
        if self._scopes and self._scopes[-1].kind == "skipped":
            # Body of an unsupported block: drop everything up to its '}'
            return BlockClose() if line.content == "}" else None
        if self._scopes and self._scopes[-1].kind == "class":
            return parse_body_line(line)
        return parse_statement(line)

    def _skip(self, err: ClassDiagramError) -> None:
        logger.warning("Skipping line %s: %s", err.line, err.message)
        self.diagram.diagnostics.append(err)

    # ========================================================================
    # Statements
    # ========================================================================

    def _apply(self, statement: Statement, line: SourceLine) -> None:
        if isinstance(statement, DirectionStmt):
            if self._scopes:
                raise self._syntax_error(
                    line, "direction is only allowed at the top level"
                )
            self.diagram.direction = statement.direction

        elif isinstance(statement, NamespaceOpen):
            path = self._ensure_namespace(self._namespace_path, statement.name, line)
            self._scopes.append(_Scope("namespace", path, line))

        elif isinstance(statement, BlockClose):
            if not self._scopes:
                raise self._syntax_error(line, "unmatched '}'")
            self._scopes.pop()

        elif isinstance(statement, ClassStmt):
            node = self._declare(statement.ref, line)
            if statement.generic is not None:
                if node.generic is None:
                    node.generic = statement.generic
                elif node.generic != statement.generic:
                    raise self._conflict(
                        line,
                        f"class '{node.id}' redeclared with generic "
                        f"~{statement.generic}~, previously ~{node.generic}~",
                    )
            if statement.opens_block:
                self._scopes.append(_Scope("class", node.id, line))

        elif isinstance(statement, MemberStmt):
            if statement.target is None:
                node = self.diagram.classes[self._scopes[-1].path]
            else:
                node = self._resolve(statement.target, line)
            self._add_member(node, statement.member, line)

        elif isinstance(statement, RelationStmt):
            source = self._resolve(statement.left, line)
            target = self._resolve(statement.right, line)
            rel_type, marker_at = RELATIONSHIP_ARROWS[statement.arrow]
            self.diagram.relationships.append(
                ClassRelationship(
                    from_=source.id,
                    to=target.id,
                    type=rel_type,
                    marker_at=marker_at,
                    label=statement.label,
                    from_cardinality=statement.left_cardinality,
                    to_cardinality=statement.right_cardinality,
                )
            )

        elif isinstance(statement, NoteStmt):
            if statement.target is None:
                self.diagram.notes.append(ClassNote(text=statement.text))
            else:
                node = self._resolve(statement.target, line)
                node.notes.append(ClassNote(text=statement.text, target=node.id))

        elif isinstance(statement, UnsupportedStmt):
            if statement.opens_block:
                self._scopes.append(_Scope("skipped", statement.construct, line))
            raise UnsupportedConstructError(
                statement.construct,
                line=line.number,
                column=line.indent + 1,
                text=line.text,
            )

    # ========================================================================
    # Namespaces and classes
    # ========================================================================

    @property
    def _namespace_path(self) -> str:
        """Path of the innermost open namespace ("" at the top level)."""
        for scope in reversed(self._scopes):
            if scope.kind == "namespace":
                return scope.path
        return ""

    def _ensure_namespace(self, parent: str, name: Identifier, line: SourceLine) -> str:
        path = qualify(parent, name.text)
        if path in self.diagram.namespaces:
            return path

        depth = self._depths[parent] + 1
        if depth > self.options.max_namespace_depth:
            raise self._syntax_error(
                line,
                f"namespace '{path}' exceeds the maximum nesting depth of "
                f"{self.options.max_namespace_depth}",
            )
        self.diagram.namespaces[path] = ClassNamespace(
            name=name.text, path=path, escaped=name.escaped
        )
        self.diagram.namespace(parent).namespace_ids.append(path)
        self._parents[path] = parent
        self._depths[path] = depth
        return path

    def _ensure_namespaces(self, parts: tuple[Identifier, ...], line: SourceLine) -> str:
        path = ""
        for part in parts:
            path = self._ensure_namespace(path, part, line)
        return path

    def _ensure_class(self, namespace: str, name: Identifier) -> ClassNode:
        class_id = qualify(namespace, name.text)
        node = self.diagram.classes.get(class_id)
        if node is None:
            node = ClassNode(
                id=class_id, name=name.text, namespace=namespace, escaped=name.escaped
            )
            self.diagram.classes[class_id] = node
            self.diagram.namespace(namespace).class_ids.append(class_id)
        return node

    def _declare(self, ref: QualifiedName, line: SourceLine) -> ClassNode:
        """Declare a class: in the current namespace, or absolutely if qualified."""
        if ref.is_qualified:
            namespace = self._ensure_namespaces(ref.namespace_parts, line)
        else:
            namespace = self._namespace_path
        return self._ensure_class(namespace, ref.name)

    def _resolve(self, ref: QualifiedName, line: SourceLine) -> ClassNode:
        """Find the class a reference names, declaring it if it is unknown.

        Bare names are looked up from the current namespace outward.
        """
        if ref.is_qualified:
            return self._declare(ref, line)

        current = self._namespace_path
        path = current
        while True:
            node = self.diagram.classes.get(qualify(path, ref.name.text))
            if node is not None:
                return node
            if not path:
                break
            path = self._parents[path]

        logger.debug(
            "Line %d: implicitly declaring class %r in namespace %r",
            line.number,
            ref.name.text,
            current,
        )
        return self._ensure_class(current, ref.name)

    # ========================================================================
    # Members
    # ========================================================================

    def _add_member(self, node: ClassNode, member: ClassMember, line: SourceLine) -> None:
        key = _member_key(member)
        for existing in node.members:
            if _member_key(existing) != key:
                continue
            if _member_signature(existing) == _member_signature(member):
                logger.debug(
                    "Line %d: dropping duplicate member %r of class %r",
                    line.number,
                    member.name,
                    node.id,
                )
                return
            raise self._conflict(
                line,
                f"member '{member.name}' of class '{node.id}' conflicts with "
                f"an earlier declaration",
            )
        node.members.append(member)

    # ========================================================================
    # Errors
    # ========================================================================

    @staticmethod
    def _syntax_error(
        line: SourceLine, message: str, expected: str | None = None
    ) -> DiagramSyntaxError:
        return DiagramSyntaxError(
            message,
            line=line.number,
            column=line.indent + 1,
            text=line.text,
            expected=expected,
        )

    @staticmethod
    def _conflict(line: SourceLine, message: str) -> DuplicateNamespaceConflict:
        return DuplicateNamespaceConflict(
            message, line=line.number, column=line.indent + 1, text=line.text
        )


def _member_key(member: ClassMember) -> tuple:
    """Identity of a member within its class: name, plus parameter types for methods."""
    if isinstance(member, ClassAttribute):
        return ("attribute", member.name)
    return ("method", member.name, tuple(p.type for p in member.parameters))


def _member_signature(member: ClassMember) -> tuple:
    """Everything that makes two declarations disagree (notation excluded)."""
    if isinstance(member, ClassAttribute):
        return (member.visibility, member.type, member.is_static)
    return (
        member.visibility,
        tuple((p.name, p.type) for p in member.parameters),
        member.return_type,
        member.is_static,
        member.is_abstract,
    )
