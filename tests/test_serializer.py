"""Tests for the class diagram serializer."""
from __future__ import annotations

import pytest

from mermaid_classdiagram import (
    ClassAttribute,
    ClassDiagram,
    ClassMethod,
    ClassNamespace,
    ClassNode,
    ClassNote,
    ClassRelationship,
    MethodParameter,
    member_to_string,
    parse_class_diagram,
    relationship_to_string,
    serialize_class_diagram,
)


# ============================================================================
# Members
# ============================================================================


class TestMemberToString:
    @pytest.mark.parametrize(
        "member, expected",
        [
            (ClassAttribute("+", "age", "int", "prefix"), "+int age"),
            (ClassAttribute("-", "age", "int", "postfix"), "-age: int"),
            (ClassAttribute("", "age"), "age"),
            (ClassAttribute("#", "count", "int", "prefix", is_static=True), "#int count$"),
            (ClassMethod("+", "run"), "+run()"),
            (ClassMethod("+", "run", return_type="void", return_notation="prefix"), "+void run()"),
            (ClassMethod("~", "run", return_type="void", return_notation="postfix"), "~run() void"),
            (
                ClassMethod("", "area", return_type="double", return_notation="postfix",
                            is_static=True, is_abstract=True),
                "area() double$*",
            ),
        ],
    )
    def test_notation(self, member, expected):
        assert member_to_string(member) == expected

    def test_parameters(self):
        method = ClassMethod(
            "+",
            "drive",
            parameters=[
                MethodParameter("a", "int", "prefix"),
                MethodParameter("b", "String", "postfix"),
                MethodParameter("c"),
            ],
            return_type="int",
            return_notation="postfix",
        )
        assert member_to_string(method) == "+drive(int a, b: String, c) int"


# ============================================================================
# Relationships
# ============================================================================


class TestRelationshipToString:
    @pytest.mark.parametrize(
        "type_, marker_at, arrow",
        [
            ("inheritance", "from", "<|--"),
            ("inheritance", "to", "--|>"),
            ("composition", "from", "*--"),
            ("composition", "to", "--*"),
            ("aggregation", "from", "o--"),
            ("aggregation", "to", "--o"),
            ("association", "from", "<--"),
            ("association", "to", "-->"),
            ("dependency", "from", "<.."),
            ("dependency", "to", "..>"),
            ("realization", "from", "<|.."),
            ("realization", "to", "..|>"),
            ("link", None, "--"),
            ("dashed_link", None, ".."),
        ],
    )
    def test_arrows(self, type_, marker_at, arrow):
        rel = ClassRelationship(from_="A", to="B", type=type_, marker_at=marker_at)
        assert relationship_to_string(rel) == f"A {arrow} B"

    def test_cardinalities_and_label(self):
        rel = ClassRelationship(
            from_="A",
            to="B",
            type="association",
            marker_at="to",
            label="owns",
            from_cardinality="1",
            to_cardinality="*",
        )
        assert relationship_to_string(rel) == 'A "1" --> "*" B : owns'

    def test_single_cardinality(self):
        rel = ClassRelationship(
            from_="A", to="B", type="link", marker_at=None, to_cardinality="0..1"
        )
        assert relationship_to_string(rel) == 'A -- "0..1" B'

    def test_links_ignore_marker_side(self):
        rel = ClassRelationship(from_="A", to="B", type="dashed_link", marker_at="from")
        assert relationship_to_string(rel) == "A .. B"

    def test_escaping_comes_from_the_diagram(self):
        d = parse_class_diagram(
            "classDiagram\n"
            "namespace `My Zoo` {\n"
            "  class `Big Cage`\n"
            "}\n"
            "`My Zoo`::`Big Cage` --> Keeper"
        )
        rel = d.relationships[0]
        assert relationship_to_string(rel, d) == "`My Zoo`::`Big Cage` --> Keeper"
        # without the diagram the ids are used as they are
        assert relationship_to_string(rel) == "My Zoo::Big Cage --> Keeper"


# ============================================================================
# Whole diagrams
# ============================================================================


class TestSerializeDiagram:
    def test_minimal(self):
        d = ClassDiagram()
        node = ClassNode(id="Animal", name="Animal")
        d.classes["Animal"] = node
        d.root.class_ids.append("Animal")
        assert serialize_class_diagram(d) == "classDiagram\nclass Animal\n"

    def test_empty_diagram(self):
        assert serialize_class_diagram(ClassDiagram()) == "classDiagram\n"

    def test_section_order(self):
        d = parse_class_diagram(
            "---\n"
            "title: Zoo\n"
            "---\n"
            "classDiagram\n"
            'note "free"\n'
            "namespace Zoo {\n"
            "  class Cage~T~\n"
            "  Cage : +int size\n"
            "}\n"
            'note for Zoo::Cage "cage note"\n'
            "Zoo::Cage --> Animal : holds\n"
            "class Animal\n"
            "Animal : +eat() void\n"
            "direction LR\n"
        )
        assert serialize_class_diagram(d) == (
            "---\n"
            "title: Zoo\n"
            "---\n"
            "classDiagram\n"
            "direction LR\n"
            "class Animal\n"
            "Animal : +eat() void\n"
            "namespace Zoo {\n"
            "  class Cage~T~\n"
            "  Cage : +int size\n"
            "}\n"
            "Zoo::Cage --> Animal : holds\n"
            'note for Zoo::Cage "cage note"\n'
            'note "free"\n'
        )

    def test_nested_namespaces_are_indented(self):
        d = parse_class_diagram("classDiagram\nclass A::B::C")
        assert serialize_class_diagram(d) == (
            "classDiagram\n"
            "namespace A {\n"
            "  namespace B {\n"
            "    class C\n"
            "  }\n"
            "}\n"
        )

    def test_escaped_names(self):
        d = parse_class_diagram(
            "classDiagram\n"
            "class `Animal Class!`\n"
            "`Animal Class!` : +int age"
        )
        assert serialize_class_diagram(d) == (
            "classDiagram\n"
            "class `Animal Class!`\n"
            "`Animal Class!` : +int age\n"
        )

    def test_comments_are_not_emitted(self):
        d = parse_class_diagram("classDiagram\n%% hello\nclass A {\n  %% inside\n}")
        assert "%%" not in serialize_class_diagram(d)

    def test_note_targets_on_free_notes(self):
        d = ClassDiagram(notes=[ClassNote("loose"), ClassNote("pinned", target="A")])
        assert serialize_class_diagram(d) == (
            "classDiagram\n"
            'note "loose"\n'
            'note for A "pinned"\n'
        )

    def test_empty_namespace(self):
        d = ClassDiagram()
        d.namespaces["Empty"] = ClassNamespace(name="Empty", path="Empty")
        d.root.namespace_ids.append("Empty")
        assert serialize_class_diagram(d) == "classDiagram\nnamespace Empty {\n}\n"
