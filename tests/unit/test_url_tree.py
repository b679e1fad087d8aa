"""Tests for the URL segment tree."""

import io
import json

from apislice.core.url_tree import (
    UrlTreeNode, create_url_tree, find_node, get_operations, url_tree_to_dict, write_url_tree_json
)
from apislice.models.document import Document


def _document(*paths, methods=("get",)):
    return Document.from_dict({
        "openapi": "3.0.1",
        "info": {"title": "Test", "version": "v1.0"},
        "paths": {
            path: {
                method: {"operationId": f"{method}:{path}", "responses": {}}
                for method in methods
            }
            for path in paths
        },
    })


def _operation_ids(operations):
    return [operation.operation_id for operation in operations]


class TestUrlTreeConstruction:
    """Test building the tree."""

    def test_segments_become_nodes(self, graph_document):
        """Test every path segment gets a node under the root."""
        root = create_url_tree({"v1.0": graph_document})

        users = root.get_child("users")
        assert users is not None
        assert users.path == "/users"
        assert users.parameter_child.segment == "{user-id}"
        assert users.parameter_child.get_child("messages").path == "/users/{user-id}/messages"

    def test_root_path_item_lives_on_root(self, graph_document):
        """Test the "/" path attaches to the root node."""
        root = create_url_tree({"v1.0": graph_document})

        assert root.has_operations("v1.0")
        assert _operation_ids(get_operations(root, "/", "v1.0")) == ["graphService.GetGraphService"]

    def test_parameter_segments_merge(self):
        """Test differently named parameters at one position share a node."""
        root = create_url_tree({"v1.0": _document("/a/{x}", "/a/{y}/b")})

        node = root.get_child("a")
        assert node.parameter_child.segment == "{x}"
        assert len(node.children) == 1
        assert _operation_ids(get_operations(root, "/a/1/b", "v1.0")) == ["get:/a/{y}/b"]

    def test_multiple_labels(self):
        """Test one node holds path items for several labels."""
        root = create_url_tree({
            "v1.0": _document("/users"),
            "beta": _document("/users", "/users/{user-id}"),
        })

        users = root.get_child("users")
        assert set(users.path_items) == {"v1.0", "beta"}
        assert users.parameter_child.path_items.keys() == {"beta"}

    def test_same_label_merges_operations(self):
        """Test attaching a second document under one label merges verbs."""
        root = UrlTreeNode("/")
        root.attach(_document("/users", methods=("get",)), "v1.0")
        root.attach(_document("/users", methods=("post",)), "v1.0")

        operations = get_operations(root, "/users", "v1.0")
        assert sorted(_operation_ids(operations)) == ["get:/users", "post:/users"]


class TestUrlTreeLookup:
    """Test resolving urls against the tree."""

    def test_literal_match(self, graph_document):
        """Test a literal path resolves to all its operations."""
        root = create_url_tree({"v1.0": graph_document})

        operations = get_operations(root, "/users", "v1.0")
        assert _operation_ids(operations) == ["users.user.ListUser", "users.user.CreateUser"]

    def test_case_insensitive_match(self, graph_document):
        """Test literal segments match regardless of case."""
        root = create_url_tree({"v1.0": graph_document})

        assert len(get_operations(root, "/USERS", "v1.0")) == 2

    def test_concrete_key_uses_parameter_child(self, graph_document):
        """Test a concrete key value falls back to the parameter child."""
        root = create_url_tree({"v1.0": graph_document})

        operations = get_operations(root, "/users/12345", "v1.0")
        assert _operation_ids(operations) == [
            "users.user.GetUser", "users.user.UpdateUser", "users.user.DeleteUser"
        ]

    def test_templated_url_matches(self, graph_document):
        """Test a url using the placeholders themselves resolves."""
        root = create_url_tree({"v1.0": graph_document})

        operations = get_operations(root, "/users/{user-id}/messages", "v1.0")
        assert _operation_ids(operations) == ["users.ListMessages"]

    def test_alternating_keys(self, graph_document):
        """Test parameter fallbacks separated by a literal segment."""
        root = create_url_tree({"v1.0": graph_document})

        operations = get_operations(root, "/users/123/messages/456", "v1.0")
        assert _operation_ids(operations) == ["users.GetMessages"]

    def test_two_consecutive_fallbacks_fail(self):
        """Test the parameter child is never used for two segments in a row."""
        root = create_url_tree({"v1.0": _document("/a/{x}/{y}")})

        assert get_operations(root, "/a/1/2", "v1.0") is None
        assert _operation_ids(get_operations(root, "/a/{x}/{y}", "v1.0")) == ["get:/a/{x}/{y}"]

    def test_first_segment_miss(self, graph_document):
        """Test an unknown first segment never falls back."""
        root = create_url_tree({"v1.0": graph_document})

        assert get_operations(root, "/unknown", "v1.0") is None
        assert find_node(root, "/unknown/users") is None

    def test_unknown_tail(self, graph_document):
        """Test a miss deeper in the path returns None."""
        root = create_url_tree({"v1.0": graph_document})

        assert get_operations(root, "/users/12345/unknown", "v1.0") is None

    def test_missing_label_returns_empty(self, graph_document):
        """Test a node without the label yields an empty list, not None."""
        root = create_url_tree({"v1.0": graph_document})

        assert get_operations(root, "/users", "beta") == []

    def test_intermediate_node_without_operations(self, graph_document):
        """Test a node with no path item of its own."""
        root = create_url_tree({"v1.0": graph_document})

        assert get_operations(root, "/communications", "v1.0") == []

    def test_root_without_operations(self):
        """Test "/" returns None when the root holds no operations."""
        root = create_url_tree({"v1.0": _document("/users")})

        assert get_operations(root, "/", "v1.0") is None


class TestUrlTreeExport:
    """Test exporting the tree as JSON."""

    def test_compact_json(self):
        """Test the exact serialized form of a small tree."""
        root = create_url_tree({"mock": _document("/", "/users")})
        sink = io.StringIO()

        write_url_tree_json(root, sink)

        assert sink.getvalue() == (
            '{"segment":"/","labels":[{"name":"mock","methods":["Get"]}],'
            '"children":[{"segment":"users","labels":[{"name":"mock","methods":["Get"]}]}]}'
        )

    def test_children_sorted_by_segment(self):
        """Test children are emitted in ordinal segment order."""
        root = create_url_tree({"mock": _document("/zeta", "/beta", "/Alpha")})

        data = url_tree_to_dict(root)

        assert [child["segment"] for child in data["children"]] == ["Alpha", "beta", "zeta"]

    def test_methods_use_display_names(self, graph_document):
        """Test verbs are listed capitalized per label."""
        root = create_url_tree({"v1.0": graph_document})
        sink = io.StringIO()

        write_url_tree_json(root, sink)
        data = json.loads(sink.getvalue())

        users = next(child for child in data["children"] if child["segment"] == "users")
        assert users["labels"] == [{"name": "v1.0", "methods": ["Get", "Post"]}]
        user = users["children"][0]
        assert user["segment"] == "{user-id}"
        assert user["labels"][0]["methods"] == ["Get", "Patch", "Delete"]

    def test_leaf_has_no_children_key(self):
        """Test leaf nodes omit the children list."""
        root = create_url_tree({"mock": _document("/users")})

        leaf = url_tree_to_dict(root)["children"][0]
        assert "children" not in leaf
