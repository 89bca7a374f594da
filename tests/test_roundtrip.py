"""Round-trip tests: parse -> serialize -> parse must give back the same diagram."""
from __future__ import annotations

import pytest

from mermaid_classdiagram import parse_class_diagram, serialize_class_diagram


def roundtrip(text: str):
    first = parse_class_diagram(text)
    output = serialize_class_diagram(first)
    second = parse_class_diagram(output)
    return first, second, output


# ============================================================================
# Exact text
# ============================================================================


class TestCanonicalText:
    def test_minimal_diagram(self):
        text = "classDiagram\nclass Animal\n"
        assert serialize_class_diagram(parse_class_diagram(text)) == text

    def test_serializer_output_is_a_fixed_point(self):
        text = (
            "classDiagram\n"
            "  class Animal {\n"
            "    +name: String\n"
            "    +int age\n"
            "  }\n"
            "  Animal <|-- Dog : is a\n"
        )
        _, second, output = roundtrip(text)
        assert serialize_class_diagram(second) == output


# ============================================================================
# Structural equality
# ============================================================================


class TestRoundTrip:
    def test_simple_class(self):
        first, second, _ = roundtrip("classDiagram\nclass Animal\n")
        assert first == second

    def test_backtick_names(self):
        first, second, output = roundtrip(
            "classDiagram\n"
            "class `Animal Class!`\n"
            "class `Car Class`\n"
            "`Animal Class!` --> `Car Class`\n"
        )
        assert first == second
        assert "`Animal Class!` --> `Car Class`" in output

    def test_escaping_is_kept_per_name(self):
        first, second, output = roundtrip(
            "classDiagram\nclass `Animal`\nclass Dog\n`Animal` <|-- Dog\n"
        )
        assert first == second
        assert first.classes["Animal"].escaped is True
        assert first.classes["Dog"].escaped is False
        assert "class `Animal`\n" in output
        assert "class Dog\n" in output
        assert "`Dog`" not in output
        assert "`Animal` <|-- Dog\n" in output
        assert serialize_class_diagram(second) == output

    def test_members_prefix_notation(self):
        first, second, _ = roundtrip(
            "classDiagram\nclass Test\nTest : +int x\nTest : +int method(int a)\n"
        )
        assert first == second
        method = second.classes["Test"].methods[0]
        assert method.return_notation == "prefix"
        assert method.parameters[0].notation == "prefix"

    def test_members_postfix_notation(self):
        first, second, _ = roundtrip(
            "classDiagram\nclass Test\nTest : +x: int\nTest : +method(a: int) String\n"
        )
        assert first == second
        assert second.classes["Test"].attributes[0].notation == "postfix"

    def test_visibility(self):
        first, second, _ = roundtrip(
            "classDiagram\n"
            "class V {\n"
            "  +a\n"
            "  -b\n"
            "  #c\n"
            "  ~d\n"
            "  e\n"
            "}\n"
        )
        assert first == second
        assert [m.visibility for m in second.classes["V"].members] == ["+", "-", "#", "~", ""]

    def test_classifiers_and_generics(self):
        first, second, _ = roundtrip(
            "classDiagram\n"
            "class Shape~T~ {\n"
            "  +count$\n"
            "  +area() double*\n"
            "  +List~T~ items\n"
            "}\n"
        )
        assert first == second

    def test_nested_generics(self):
        first, second, output = roundtrip(
            "classDiagram\n"
            "class Box~List~int~~\n"
            "Box : +List~List~int~~ xs\n"
            "Box : +index(m: Map~K, List~V~~) Set~K~\n"
        )
        assert first == second
        assert "class Box~List~int~~\n" in output
        assert "Box : +List~List~int~~ xs\n" in output
        assert "Box : +index(m: Map~K, List~V~~) Set~K~\n" in output

    def test_direction(self):
        first, second, _ = roundtrip("classDiagram\ndirection RL\nclass Test\n")
        assert second.direction == "RL"
        assert first == second

    def test_notes(self):
        first, second, _ = roundtrip(
            'classDiagram\nclass Test\nnote "General note"\nnote for Test "Class note"\n'
        )
        assert first == second

    def test_namespace(self):
        first, second, _ = roundtrip(
            "classDiagram\n"
            "namespace MyNamespace {\n"
            "class Test\n"
            "Test : +int x\n"
            "}\n"
            "class OutsideClass\n"
        )
        assert first == second
        assert second.namespaces["MyNamespace"].class_ids == ["MyNamespace::Test"]

    def test_deeply_nested_namespaces(self):
        first, second, _ = roundtrip(
            "classDiagram\n"
            "namespace A {\n"
            "  namespace B {\n"
            "    namespace C {\n"
            "      class Leaf\n"
            "    }\n"
            "    class Middle\n"
            "  }\n"
            "}\n"
            "A::B::C::Leaf --> A::B::Middle\n"
        )
        assert first == second
        assert second.relationships[0].from_ == "A::B::C::Leaf"

    def test_frontmatter(self):
        first, second, output = roundtrip(
            "---\ntitle: Animals\nconfig:\n  theme: dark\n---\nclassDiagram\nclass A\n"
        )
        assert first == second
        assert output.startswith("---\ntitle: Animals\nconfig:\n  theme: dark\n---\nclassDiagram\n")

    def test_complex_diagram(self):
        first, second, _ = roundtrip(
            "classDiagram\n"
            "direction RL\n"
            "class `Animal Class!`\n"
            "class Vehicle\n"
            "`Animal Class!` : +int age\n"
            "`Animal Class!` : +name: String\n"
            "`Animal Class!` : +move(int distance) void\n"
            "Vehicle : +speed: int\n"
            "Vehicle : +drive(a: int, b: String) int\n"
            '`Animal Class!` "1" --> "*" Vehicle : owns\n'
            'note "This is a test diagram"\n'
            'note for Vehicle "Vehicles are fast"\n'
        )
        assert first == second


# ============================================================================
# Relationships
# ============================================================================


ARROWS = [
    "<|--", "--|>", "*--", "--*", "o--", "--o", "<--", "-->",
    "<..", "..>", "<|..", "..|>", "--", "..",
]


class TestRelationshipFidelity:
    @pytest.mark.parametrize("arrow", ARROWS)
    def test_arrow_with_cardinalities_and_label(self, arrow):
        first, second, output = roundtrip(
            f'classDiagram\nclass A\nclass B\nA "1" {arrow} "0..*" B : uses\n'
        )
        assert first == second
        assert f'A "1" {arrow} "0..*" B : uses' in output

    def test_relationship_order_is_kept(self):
        first, second, _ = roundtrip(
            "classDiagram\nC --> A\nA <|-- B\nB .. C\n"
        )
        assert [(r.from_, r.to) for r in second.relationships] == [
            ("C", "A"),
            ("A", "B"),
            ("B", "C"),
        ]
        assert first == second
