"""Core data models for the parsing service.

This module contains the runtime state enumeration and the immutable syntax
tree returned to callers. Trees are deep copies of the engine's output, so
they stay navigable after the call returns and hold no reference to the
parser that produced them.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

Point = Tuple[int, int]


class RuntimeState(Enum):
    """Lifecycle of the parsing engine within one context."""

    UNINITIALIZED = "UNINITIALIZED"
    INITIALIZING = "INITIALIZING"
    READY = "READY"


@dataclass(frozen=True)
class SyntaxNode:
    """One node of a syntax tree."""

    kind: str
    start_byte: int
    end_byte: int
    start_point: Point
    end_point: Point
    is_named: bool = True
    is_error: bool = False
    is_missing: bool = False
    has_error: bool = False
    field_name: Optional[str] = None
    children: Tuple["SyntaxNode", ...] = field(default=(), repr=False)

    @property
    def child_count(self) -> int:
        return len(self.children)

    @property
    def named_children(self) -> Tuple["SyntaxNode", ...]:
        return tuple(child for child in self.children if child.is_named)

    @property
    def byte_range(self) -> Tuple[int, int]:
        return (self.start_byte, self.end_byte)

    def child_by_field_name(self, name: str) -> Optional["SyntaxNode"]:
        """Return the first child attached under the given grammar field."""
        for child in self.children:
            if child.field_name == name:
                return child
        return None

    def walk(self) -> Iterator["SyntaxNode"]:
        """Iterate over this node and its descendants in pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def to_dict(self, max_depth: Optional[int] = None) -> Dict[str, Any]:
        """
        Convert the node into a JSON-serializable outline.

        Args:
            max_depth: Depth below this node to include (None for unlimited)

        Returns:
            Dictionary with kind, ranges, flags and children
        """
        data: Dict[str, Any] = {
            "kind": self.kind,
            "start_byte": self.start_byte,
            "end_byte": self.end_byte,
            "start_point": list(self.start_point),
            "end_point": list(self.end_point),
            "child_count": self.child_count,
        }
        if self.field_name:
            data["field"] = self.field_name
        if self.is_error:
            data["is_error"] = True
        if self.is_missing:
            data["is_missing"] = True

        if max_depth is None or max_depth > 0:
            next_depth = None if max_depth is None else max_depth - 1
            data["children"] = [
                child.to_dict(next_depth) for child in self.children
            ]
        return data


def _end_point_of(source: bytes) -> Point:
    """Row/column (in bytes) of the position just after the last byte."""
    row = source.count(b"\n")
    last_newline = source.rfind(b"\n")
    return (row, len(source) - (last_newline + 1))


def _copy_node(ts_node: Any, field_name: Optional[str], children: List[SyntaxNode]):
    return SyntaxNode(
        kind=ts_node.type,
        start_byte=ts_node.start_byte,
        end_byte=ts_node.end_byte,
        start_point=tuple(ts_node.start_point),
        end_point=tuple(ts_node.end_point),
        is_named=ts_node.is_named,
        is_error=ts_node.is_error,
        is_missing=ts_node.is_missing,
        has_error=ts_node.has_error,
        field_name=field_name,
        children=tuple(children),
    )


def freeze_tree_sitter_tree(ts_tree: Any) -> SyntaxNode:
    """
    Copy an engine tree into immutable SyntaxNode objects.

    The walk uses a tree cursor and an explicit stack so deeply nested
    sources do not hit the interpreter's recursion limit.

    Args:
        ts_tree: A tree_sitter.Tree

    Returns:
        The copied root node
    """
    cursor = ts_tree.walk()
    # Each frame: [engine node, field name, copied children]
    stack: List[list] = [[cursor.node, None, []]]

    while True:
        if cursor.goto_first_child():
            stack.append([cursor.node, cursor.field_name, []])
            continue

        while True:
            ts_node, field_name, children = stack.pop()
            copied = _copy_node(ts_node, field_name, children)
            if not stack:
                return copied
            stack[-1][2].append(copied)
            if cursor.goto_next_sibling():
                stack.append([cursor.node, cursor.field_name, []])
                break
            cursor.goto_parent()


@dataclass(frozen=True)
class SyntaxTree:
    """Immutable result of one parse call."""

    language: str
    source: bytes = field(repr=False)
    root_node: SyntaxNode = field(repr=False)

    @classmethod
    def from_tree_sitter(cls, language: str, source: bytes, ts_tree: Any) -> "SyntaxTree":
        """
        Build a SyntaxTree from an engine tree.

        The root node's range is widened to the whole input, including any
        leading or trailing whitespace the engine leaves outside the root.
        """
        root = freeze_tree_sitter_tree(ts_tree)
        root = replace(
            root,
            start_byte=0,
            end_byte=len(source),
            start_point=(0, 0),
            end_point=_end_point_of(source),
        )
        return cls(language=language, source=source, root_node=root)

    @property
    def has_error(self) -> bool:
        """True when the source contained syntax errors."""
        return self.root_node.has_error

    def text(self, node: SyntaxNode, encoding: str = "utf-8") -> str:
        """Return the source text covered by a node."""
        return self.source[node.start_byte : node.end_byte].decode(
            encoding, errors="replace"
        )

    def walk(self) -> Iterator[SyntaxNode]:
        return self.root_node.walk()

    def find_all(self, kind: str) -> List[SyntaxNode]:
        """Find all nodes of the given kind in pre-order."""
        return [node for node in self.walk() if node.kind == kind]

    def error_nodes(self) -> List[SyntaxNode]:
        return [node for node in self.walk() if node.is_error or node.is_missing]

    def to_dict(self, max_depth: Optional[int] = None) -> Dict[str, Any]:
        return {
            "language": self.language,
            "has_error": self.has_error,
            "root": self.root_node.to_dict(max_depth),
        }
