"""Grammar-neutral view over tree-sitter nodes.

Every node the traversal sees is tagged with a NodeShape, so the driver can
dispatch on a closed set of shapes instead of probing raw node types.
"""
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Iterator, List, Optional
from tree_sitter import Node


class NodeShape(Enum):
    """Node shapes the extractors care about."""
    CALL = 'call'
    INTERPOLATED_LITERAL = 'interpolated_literal'
    PLAIN_LITERAL = 'plain_literal'
    OTHER = 'other'


@dataclass(frozen=True)
class Grammar:
    """Node type names of one tree-sitter grammar."""
    call_type: str
    member_type: str
    member_property_field: str
    string_type: str
    template_type: Optional[str]
    interpolation_type: str
    delimiter_types: FrozenSet[str]
    self_node_types: FrozenSet[str]  # e.g. JS `this`
    self_identifiers: FrozenSet[str]  # e.g. Python `self`


_JS_GRAMMAR = Grammar(
    call_type='call_expression',
    member_type='member_expression',
    member_property_field='property',
    string_type='string',
    template_type='template_string',
    interpolation_type='template_substitution',
    delimiter_types=frozenset({'"', "'", '`'}),
    self_node_types=frozenset({'this'}),
    self_identifiers=frozenset(),
)

GRAMMARS = {
    'python': Grammar(
        call_type='call',
        member_type='attribute',
        member_property_field='attribute',
        string_type='string',
        template_type=None,  # f-strings are `string` nodes with interpolation children
        interpolation_type='interpolation',
        delimiter_types=frozenset({'string_start', 'string_end'}),
        self_node_types=frozenset(),
        self_identifiers=frozenset({'self', 'cls'}),
    ),
    'javascript': _JS_GRAMMAR,
    'typescript': _JS_GRAMMAR,
    'tsx': _JS_GRAMMAR,
}

CLASS_NODE_TYPES = {'class_definition', 'class_declaration', 'abstract_class_declaration', 'class'}


@dataclass
class CallSite:
    """A call expression broken into the parts the extractors read."""
    node: Node
    callee_kind: str  # 'member', 'identifier' or 'other'
    name: Optional[str]  # method name for members, function name for identifiers
    receiver: Optional[Node]  # object of a member callee
    arguments: List[Node]
    line: int
    column: int


def node_text(node: Node) -> str:
    return node.text.decode('utf-8', errors='ignore')


def traverse(node: Node) -> Iterator[Node]:
    """Iteratively traverse tree using a stack and yield all nodes.

    Args:
        node: Root node to start traversal

    Yields:
        All nodes in tree, pre-order, left to right
    """
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def shape_of(node: Node, grammar: Grammar) -> NodeShape:
    """Tag a node with the shape the extractors dispatch on."""
    if node.type == grammar.call_type:
        return NodeShape.CALL
    if grammar.template_type and node.type == grammar.template_type:
        return NodeShape.INTERPOLATED_LITERAL
    if node.type == grammar.string_type:
        if any(child.type == grammar.interpolation_type for child in node.children):
            return NodeShape.INTERPOLATED_LITERAL
        return NodeShape.PLAIN_LITERAL
    return NodeShape.OTHER


def is_literal(node: Node, grammar: Grammar) -> bool:
    return shape_of(node, grammar) in (NodeShape.PLAIN_LITERAL, NodeShape.INTERPOLATED_LITERAL)


def literal_text(node: Node, grammar: Grammar) -> str:
    """Return the literal segments of a string or template, without quotes.

    Interpolated expressions are dropped; escape sequences stay raw.
    """
    if not node.children:
        return node_text(node).strip('\'"`')

    parts = []
    for child in node.children:
        if child.type in grammar.delimiter_types or child.type == grammar.interpolation_type:
            continue
        parts.append(node_text(child))
    return ''.join(parts)


def is_self_receiver(node: Node, grammar: Grammar) -> bool:
    """True for `this` in JS/TS and `self`/`cls` in Python."""
    if node.type in grammar.self_node_types:
        return True
    return node.type == 'identifier' and node_text(node) in grammar.self_identifiers


def call_arguments(node: Node) -> List[Node]:
    """Positional argument nodes of a call, skipping punctuation and comments."""
    args_node = node.child_by_field_name('arguments')
    if args_node is None:
        return []
    # Tagged template: sql`...` has the template itself as argument
    if args_node.type not in ('arguments', 'argument_list'):
        return [args_node]
    return [child for child in args_node.named_children if child.type != 'comment']


def call_site(node: Node, grammar: Grammar) -> CallSite:
    """Break a call node into callee kind, name, receiver and arguments."""
    callee = node.child_by_field_name('function')
    callee_kind = 'other'
    name = None
    receiver = None

    if callee is not None:
        if callee.type == grammar.member_type:
            property_node = callee.child_by_field_name(grammar.member_property_field)
            callee_kind = 'member'
            receiver = callee.child_by_field_name('object')
            name = node_text(property_node) if property_node is not None else None
        elif callee.type == 'identifier':
            callee_kind = 'identifier'
            name = node_text(callee)

    return CallSite(
        node=node,
        callee_kind=callee_kind,
        name=name,
        receiver=receiver,
        arguments=call_arguments(node),
        line=node.start_point[0] + 1,
        column=node.start_point[1],
    )


def enclosing_class_name(node: Node) -> Optional[str]:
    """Name of the nearest class around a node, or None at module level."""
    current = node.parent
    while current is not None:
        if current.type in CLASS_NODE_TYPES:
            name_node = current.child_by_field_name('name')
            return node_text(name_node) if name_node is not None else None
        current = current.parent
    return None
