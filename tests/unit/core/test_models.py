"""
Tests for the immutable syntax tree models.
"""

import dataclasses

import pytest

from syntax_parser.core.models import SyntaxNode, SyntaxTree


def _leaf(kind, start, end, **kwargs):
    return SyntaxNode(kind, start, end, (0, start), (0, end), **kwargs)


@pytest.fixture
def small_tree():
    """Hand-built tree for `x = 1`."""
    left = _leaf("identifier", 0, 1, field_name="left")
    equals = _leaf("=", 2, 3, is_named=False)
    right = _leaf("integer", 4, 5, field_name="right")
    assignment = SyntaxNode(
        "assignment", 0, 5, (0, 0), (0, 5), children=(left, equals, right)
    )
    statement = SyntaxNode(
        "expression_statement", 0, 5, (0, 0), (0, 5), children=(assignment,)
    )
    root = SyntaxNode("module", 0, 5, (0, 0), (0, 5), children=(statement,))
    return SyntaxTree(language="python", source=b"x = 1", root_node=root)


class TestSyntaxNode:
    def test_nodes_are_immutable(self, small_tree):
        with pytest.raises(dataclasses.FrozenInstanceError):
            small_tree.root_node.kind = "other"
        with pytest.raises(dataclasses.FrozenInstanceError):
            small_tree.language = "java"

    def test_named_children_and_fields(self, small_tree):
        assignment = small_tree.root_node.children[0].children[0]

        assert assignment.child_count == 3
        assert [c.kind for c in assignment.named_children] == ["identifier", "integer"]
        assert assignment.child_by_field_name("right").kind == "integer"
        assert assignment.child_by_field_name("operator") is None
        assert assignment.byte_range == (0, 5)

    def test_walk_is_pre_order(self, small_tree):
        kinds = [node.kind for node in small_tree.walk()]

        assert kinds == [
            "module",
            "expression_statement",
            "assignment",
            "identifier",
            "=",
            "integer",
        ]

    def test_walk_handles_deep_nesting(self):
        node = _leaf("leaf", 0, 0)
        for _ in range(5000):
            node = SyntaxNode("wrapper", 0, 0, (0, 0), (0, 0), children=(node,))

        assert sum(1 for _ in node.walk()) == 5001


class TestSyntaxTree:
    def test_text_and_find_all(self, small_tree):
        (identifier,) = small_tree.find_all("identifier")

        assert small_tree.text(identifier) == "x"
        assert small_tree.find_all("class_definition") == []

    def test_error_nodes(self):
        missing = _leaf(")", 5, 5, is_missing=True, is_named=False)
        error = _leaf("ERROR", 0, 3, is_error=True)
        root = SyntaxNode(
            "module", 0, 5, (0, 0), (0, 5), has_error=True, children=(error, missing)
        )
        tree = SyntaxTree("python", b"f(:  ", root)

        assert tree.has_error is True
        assert tree.error_nodes() == [error, missing]

    def test_to_dict_respects_max_depth(self, small_tree):
        data = small_tree.to_dict(max_depth=1)

        assert data["language"] == "python"
        assert data["has_error"] is False
        statement = data["root"]["children"][0]
        assert statement["kind"] == "expression_statement"
        assert statement["child_count"] == 1
        assert "children" not in statement

    def test_to_dict_unlimited(self, small_tree):
        data = small_tree.to_dict()
        assignment = data["root"]["children"][0]["children"][0]

        assert [child["kind"] for child in assignment["children"]] == [
            "identifier",
            "=",
            "integer",
        ]
        assert assignment["children"][0]["field"] == "left"
        assert assignment["children"][0]["start_point"] == [0, 0]


class TestFromTreeSitter:
    @pytest.mark.asyncio
    async def test_tree_outlives_engine_tree(self, parse_service):
        """Test the returned tree is a detached copy"""
        tree = await parse_service.parse("class A:\n    x = 1\n", "python")

        assert isinstance(tree.root_node.children, tuple)
        assert tree.find_all("class_definition")[0].child_by_field_name("name") is not None
        assert tree.text(tree.find_all("identifier")[0]) == "A"

    @pytest.mark.asyncio
    async def test_deeply_nested_source(self, parse_service):
        depth = 400
        code = "x = " + "[" * depth + "]" * depth + "\n"

        tree = await parse_service.parse(code, "python")

        assert len(tree.find_all("list")) == depth
        assert tree.has_error is False
