"""PEG grammar for Mermaid class diagram statements.

The grammar is written for parsimonious and matched one logical line at a
time: ``statement`` at the top level and inside namespace blocks,
``body_line`` inside ``class Name { ... }`` blocks, ``header`` for the
``classDiagram`` line. Lines are stripped before matching, so whitespace is
only explicit *between* tokens:

  - WS is required whitespace, OWS optional whitespace
  - EOL asserts the end of the line, so every alternative of a choice must
    consume the whole line before it wins
  - Unsupported constructs have their own rules, tried last, so they are
    reported as such instead of as generic syntax errors
"""

from __future__ import annotations

from parsimonious.grammar import Grammar

from .types import MarkerAt, RelationshipType

GRAMMAR = r"""
statement          = comment / direction_stmt / namespace_open / block_close
                     / class_stmt / note_stmt / relation_stmt / member_stmt
                     / unsupported_stmt

body_line          = comment / block_close / member_line / body_annotation

header             = ~"classDiagram(?:-v2)?" EOL

comment            = ~"%%.*"

direction_stmt     = "direction" WS direction_value EOL
direction_value    = "TB" / "TD" / "BT" / "LR" / "RL"

namespace_open     = "namespace" WS identifier OWS "{" EOL
block_close        = "}" EOL

class_stmt         = "class" WS qualified_name generic? OWS class_body? EOL
class_body         = empty_body / block_open
empty_body         = "{" OWS "}"
block_open         = "{"
generic            = "~" generic_arg "~"
generic_arg        = generic_chunk+
generic_chunk      = nested_generic / ~"[^~]+"
nested_generic     = ~r"[^~]*\w" generic

note_stmt          = "note" WS note_target? note_text EOL
note_target        = "for" WS qualified_name WS
note_text          = ~'"[^"]*"'

relation_stmt      = qualified_name OWS spaced_cardinality? relation_arrow OWS
                     spaced_cardinality? qualified_name relation_label? EOL
spaced_cardinality = cardinality OWS
cardinality        = ~'"[^"]*"'
relation_arrow     = "<|--" / "<|.." / "--|>" / "..|>" / "<--" / "<.." / "-->"
                     / "..>" / "*--" / "--*" / "o--" / aggregation_to / "--"
                     / ".."
aggregation_to     = "--o" !~r"\w"
relation_label     = OWS ":" OWS label_text
label_text         = ~".+"

member_stmt        = qualified_name OWS ":" OWS member EOL
member_line        = member EOL
member             = visibility? member_core
member_core        = method / attribute
visibility         = ~"[-+#~]"

method             = method_shape method_classifier?
method_shape       = prefix_method / postfix_method
prefix_method      = type_expr WS member_name parameters
postfix_method     = member_name parameters return_type?
return_type        = colon_return / spaced_return
colon_return       = OWS ":" OWS type_expr
spaced_return      = OWS type_expr
method_classifier  = ~r"\$\*?|\*\$?"

attribute          = attribute_shape static_marker?
attribute_shape    = postfix_attribute / prefix_attribute / member_name
postfix_attribute  = member_name OWS ":" OWS type_expr
prefix_attribute   = type_expr WS member_name
static_marker      = "$"

parameters         = "(" OWS parameter_list? OWS ")"
parameter_list     = parameter (OWS "," OWS parameter)*
parameter          = postfix_parameter / prefix_parameter / member_name
postfix_parameter  = member_name OWS ":" OWS type_expr
prefix_parameter   = type_expr WS member_name

member_name        = ~r"\w+"
type_expr          = escaped_identifier / bare_type
bare_type          = ~r"\w+(?:\.\w+)*" generic? ~r"(?:\[\])*"

qualified_name     = identifier ("::" identifier)*
identifier         = escaped_identifier / bare_identifier
escaped_identifier = ~"`(?!:)(?:[^`:]|:(?![:`]))+`"
bare_identifier    = ~r"\w+(?:[-.]\w+)*"

unsupported_stmt   = annotation_stmt / class_annotation / class_label
                     / two_way_relation / lollipop_relation / style_stmt
                     / css_shorthand
annotation_stmt    = annotation OWS qualified_name? EOL
body_annotation    = annotation EOL
annotation         = ~"<<[^>]+>>"
class_annotation   = "class" WS qualified_name generic? OWS "{" OWS annotation rest_of_line
class_label        = labelled_block / labelled_class
labelled_block     = class_label_head OWS "{" EOL
labelled_class     = class_label_head rest_of_line
class_label_head   = "class" WS qualified_name generic? OWS ~r"\[[^\]]*\]?"
two_way_relation   = qualified_name OWS spaced_cardinality? two_way_arrow rest_of_line
two_way_arrow      = ~r"(?:<\|?|\*|o)(?:--|\.\.)(?:\|?>|\*|o)"
lollipop_relation  = qualified_name OWS lollipop_arrow rest_of_line
lollipop_arrow     = "()--" / "--()" / "().." / "..()"
style_stmt         = style_keyword WS rest_of_line
style_keyword      = "classDef" / "cssClass" / "callback" / "click" / "style" / "link"
css_shorthand      = ~".*:::.*"
rest_of_line       = ~".*"

WS                 = ~"[ \t]+"
OWS                = ~"[ \t]*"
EOL                = ~"[ \t]*$"
"""

CLASS_DIAGRAM_GRAMMAR = Grammar(GRAMMAR)

# Arrow spelling -> (relationship type, side carrying the marker).
# Left spellings put the marker next to the first class, right spellings
# next to the second; plain links have no marker.
RELATIONSHIP_ARROWS: dict[str, tuple[RelationshipType, MarkerAt | None]] = {
    "<|--": ("inheritance", "from"),
    "--|>": ("inheritance", "to"),
    "*--": ("composition", "from"),
    "--*": ("composition", "to"),
    "o--": ("aggregation", "from"),
    "--o": ("aggregation", "to"),
    "<--": ("association", "from"),
    "-->": ("association", "to"),
    "<..": ("dependency", "from"),
    "..>": ("dependency", "to"),
    "<|..": ("realization", "from"),
    "..|>": ("realization", "to"),
    "--": ("link", None),
    "..": ("dashed_link", None),
}

# Human-readable names for grammar rules, used in syntax error messages
EXPECTED_CONSTRUCTS: dict[str, str] = {
    "statement": "a class diagram statement",
    "body_line": "a class member or '}'",
    "header": "the 'classDiagram' header",
    "EOL": "end of line",
    "WS": "whitespace",
    "direction_value": "one of TB, TD, BT, LR, RL",
    "identifier": "a name",
    "qualified_name": "a class name",
    "bare_identifier": "a class name",
    "escaped_identifier": "a backtick-escaped name",
    "relation_arrow": "a relationship arrow such as '<|--' or '-->'",
    "aggregation_to": "a relationship arrow such as '<|--' or '-->'",
    "two_way_arrow": "a relationship arrow such as '<|--' or '-->'",
    "lollipop_arrow": "a relationship arrow such as '<|--' or '-->'",
    "cardinality": "a quoted cardinality such as \"1\"",
    "spaced_cardinality": "a quoted cardinality such as \"1\"",
    "label_text": "relationship label text",
    "note_text": "quoted note text",
    "member": "a member declaration",
    "member_name": "a member name",
    "type_expr": "a type",
    "bare_type": "a type",
    "parameters": "a parameter list",
    "parameter": "a parameter",
    "generic": "a generic type such as ~T~",
    "generic_arg": "a generic type argument",
}
