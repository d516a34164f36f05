"""
pagesmith Reducer — Rejection Tests

Structural errors are no-ops: applied=False, the caller's tree is handed
back unchanged, and the error starts with a specific code.
"""

import copy

import pytest

from pagesmith.kernel.reducer import (
    delete_element,
    duplicate_element,
    insert_element,
    move_element,
    reduce,
    replace_elements,
    update_element,
)


def assert_rejected(result, tree, code):
    assert not result.applied
    assert result.error.startswith(f"{code}:")
    assert result.elements is tree


@pytest.fixture
def tree(sample_tree):
    return sample_tree


# ============================================================================
# dispatch
# ============================================================================

class TestDispatchRejections:
    def test_missing_type(self, tree):
        assert_rejected(reduce(tree, {}), tree, "MISSING_TYPE")

    def test_unknown_action(self, tree):
        assert_rejected(reduce(tree, {"type": "element.explode"}), tree, "UNKNOWN_ACTION")


# ============================================================================
# insert
# ============================================================================

class TestInsertRejections:
    def test_parent_not_found(self, tree):
        r = insert_element(tree, "ghost", {"id": "x", "type": "text", "settings": {}})
        assert_rejected(r, tree, "PARENT_NOT_FOUND")

    def test_parent_not_container(self, tree):
        r = insert_element(tree, "h1", {"id": "x", "type": "text", "settings": {}})
        assert_rejected(r, tree, "NOT_A_CONTAINER")

    def test_child_not_allowed_in_layout(self, tree):
        r = insert_element(tree, "cols", {"id": "x", "type": "text", "settings": {}})
        assert_rejected(r, tree, "CHILD_NOT_ALLOWED")

    def test_column_inside_column(self, tree):
        r = insert_element(tree, "c1", {"id": "x", "type": "column", "settings": {}, "children": []})
        assert_rejected(r, tree, "CHILD_NOT_ALLOWED")

    def test_duplicate_id(self, tree):
        r = insert_element(tree, None, {"id": "t1", "type": "text", "settings": {}})
        assert_rejected(r, tree, "DUPLICATE_ID")

    def test_unknown_type(self, tree):
        r = insert_element(tree, None, {"id": "x", "type": "carousel", "settings": {}})
        assert_rejected(r, tree, "INVALID_NODE")

    def test_missing_node(self, tree):
        assert_rejected(reduce(tree, {"type": "element.insert", "parent": None}), tree, "INVALID_NODE")

    def test_malformed_responsive(self, tree):
        r = insert_element(tree, None, {"id": "x", "type": "text", "settings": {"fontSize": {"mobile": "1px"}}})
        assert_rejected(r, tree, "INVALID_NODE")

    @pytest.mark.parametrize("index", ["1", 1.5, True])
    def test_bad_index(self, tree, index):
        r = insert_element(tree, None, {"id": "x", "type": "text", "settings": {}}, index)
        assert_rejected(r, tree, "INVALID_INDEX")


# ============================================================================
# update / delete / duplicate
# ============================================================================

class TestUpdateRejections:
    def test_not_found(self, tree):
        assert_rejected(update_element(tree, "ghost", {"text": "x"}), tree, "NOT_FOUND")

    def test_settings_not_mapping(self, tree):
        assert_rejected(update_element(tree, "h1", ["x"]), tree, "INVALID_SETTINGS")

    def test_missing_desktop(self, tree):
        r = update_element(tree, "h1", {"fontSize": {"tablet": "10px"}})
        assert_rejected(r, tree, "INVALID_SETTINGS")

    def test_nothing_partially_applied(self, tree):
        before = copy.deepcopy(tree)
        update_element(tree, "h1", {"text": "Changed", "fontSize": {"mobile": "1px"}})
        assert tree == before


class TestDeleteDuplicateRejections:
    def test_delete_not_found(self, tree):
        assert_rejected(delete_element(tree, "ghost"), tree, "NOT_FOUND")

    def test_duplicate_not_found(self, tree):
        assert_rejected(duplicate_element(tree, "ghost"), tree, "NOT_FOUND")


# ============================================================================
# move
# ============================================================================

class TestMoveRejections:
    def test_into_itself(self, tree):
        assert_rejected(move_element(tree, "cols", "cols", 0), tree, "CYCLE")

    def test_into_own_column(self, tree):
        assert_rejected(move_element(tree, "cols", "c1", 0), tree, "CYCLE")

    def test_column_into_own_descendant_column(self, tree):
        nested = copy.deepcopy(tree)
        nested[1]["children"][0]["children"].append({
            "id": "inner",
            "type": "two-columns",
            "settings": {},
            "children": [{"id": "ic", "type": "column", "settings": {}, "children": []}],
        })
        r = move_element(nested, "c1", "inner", 0)
        assert_rejected(r, nested, "CYCLE")

    def test_not_found(self, tree):
        assert_rejected(move_element(tree, "ghost", None, 0), tree, "NOT_FOUND")

    def test_target_not_found(self, tree):
        assert_rejected(move_element(tree, "h1", "ghost", 0), tree, "PARENT_NOT_FOUND")

    def test_target_not_container(self, tree):
        assert_rejected(move_element(tree, "h1", "d1", 0), tree, "NOT_A_CONTAINER")

    def test_content_into_layout(self, tree):
        assert_rejected(move_element(tree, "h1", "cols", 0), tree, "CHILD_NOT_ALLOWED")

    def test_same_position(self, flat_tree):
        assert_rejected(move_element(flat_tree, "a", None, 1), flat_tree, "NO_CHANGE")
        assert_rejected(move_element(flat_tree, "b", None, 1), flat_tree, "NO_CHANGE")

    def test_bad_index(self, tree):
        assert_rejected(move_element(tree, "h1", None, "0"), tree, "INVALID_INDEX")


# ============================================================================
# replace
# ============================================================================

class TestReplaceRejections:
    def test_invalid_document(self, tree):
        r = replace_elements(tree, [{"id": "x", "type": "carousel", "settings": {}}])
        assert_rejected(r, tree, "INVALID_DOCUMENT")

    def test_not_a_list(self, tree):
        assert_rejected(replace_elements(tree, {"id": "x"}), tree, "INVALID_DOCUMENT")
