import pytest

from block_conditions.authoring import RuleEditor
from block_conditions.errors import (
    ConditionNotFoundError,
    InvalidPatchError,
    UnknownConditionKindError,
)
from block_conditions.models import (
    Action,
    ConditionNode,
    ConditionType,
    Logic,
    NodeState,
    RuleDocument,
)


def _editor(sequential_ids, document: RuleDocument | None = None, **kwargs):
    return RuleEditor.open(document or RuleDocument(), id_factory=sequential_ids, **kwargs)


def test_add_configurable_condition_opens_for_editing(sequential_ids) -> None:
    editor = _editor(sequential_ids).add_condition(ConditionType.POST_SLUG)

    node = editor.document.conditions[0]
    assert node == ConditionNode(id="c1", type="post_slug")
    assert editor.state_of("c1") == NodeState.EDITING
    assert editor.needs_config("c1") is True


def test_self_contained_condition_is_added_collapsed(sequential_ids) -> None:
    editor = _editor(sequential_ids).add_condition("user_is_logged_in")

    assert editor.state_of("c1") == NodeState.COLLAPSED
    assert editor.needs_config("c1") is False


def test_post_slug_authoring_flow(sequential_ids) -> None:
    editor = _editor(sequential_ids).add_condition(ConditionType.POST_SLUG)
    editor = editor.update_condition("c1", {"slug": "contact"})
    editor = editor.commit_edit("c1")

    assert editor.document.conditions == (
        ConditionNode(id="c1", type="post_slug", params={"slug": "contact"}),
    )
    assert editor.state_of("c1") == NodeState.COLLAPSED
    assert editor.needs_config("c1") is False


def test_commit_edit_is_idempotent(sequential_ids) -> None:
    editor = _editor(sequential_ids).add_condition("post_id").commit_edit("c1")
    assert editor.commit_edit("c1") == editor


def test_operations_return_new_documents(sequential_ids) -> None:
    original = _editor(sequential_ids)
    updated = original.add_condition("post_status")

    assert original.document.conditions == ()
    assert updated.document is not original.document
    assert len(updated.document.conditions) == 1


def test_added_ids_are_unique(sequential_ids) -> None:
    document = RuleDocument(conditions=(ConditionNode(id="c1", type="post_id"),))
    editor = _editor(sequential_ids, document).add_condition("post_slug")

    assert editor.document.ids() == ["c1", "c2"]
    assert editor.last_added == editor.document.find("c2")


def test_add_unknown_kind_is_rejected(sequential_ids) -> None:
    with pytest.raises(UnknownConditionKindError):
        _editor(sequential_ids).add_condition("future_kind")


def test_update_merges_params_and_removes_none(sequential_ids) -> None:
    editor = _editor(sequential_ids).add_condition("query_string")
    editor = editor.update_condition(
        "c1", {"params": {"parameter": "ref", "value": "ads"}}
    )
    editor = editor.update_condition("c1", {"value": None, "label": "Campaign"})

    node = editor.node("c1")
    assert node.params == {"parameter": "ref"}
    assert node.label == "Campaign"


def test_update_preserves_order_and_other_nodes(sequential_ids) -> None:
    editor = (
        _editor(sequential_ids)
        .add_condition("user_is_logged_in")
        .add_condition("post_slug")
        .add_condition("post_id")
    )
    editor = editor.update_condition("c2", {"negate": True})

    assert editor.document.ids() == ["c1", "c2", "c3"]
    assert editor.node("c2").negate is True
    assert editor.node("c1").negate is False


def test_type_change_drops_params(sequential_ids) -> None:
    editor = _editor(sequential_ids).add_condition("post_slug")
    editor = editor.update_condition("c1", {"slug": "about"}).commit_edit("c1")
    editor = editor.update_condition("c1", {"type": "post_status"})

    node = editor.node("c1")
    assert node.type == "post_status"
    assert node.params == {}
    assert editor.needs_config("c1") is True
    assert editor.state_of("c1") == NodeState.EDITING


def test_type_change_to_self_contained_kind_clears_needs_config(
    sequential_ids,
) -> None:
    editor = _editor(sequential_ids).add_condition("user_has_role")
    assert editor.needs_config("c1") is True

    editor = editor.update_condition("c1", {"type": "user_is_logged_in"})

    assert editor.node("c1").type == "user_is_logged_in"
    assert editor.needs_config("c1") is False
    assert "c1" not in editor.pending_config


def test_type_change_to_same_type_keeps_params(sequential_ids) -> None:
    editor = _editor(sequential_ids).add_condition("post_slug")
    editor = editor.update_condition("c1", {"slug": "about"})
    editor = editor.update_condition("c1", {"type": "post_slug"})
    assert editor.node("c1").params == {"slug": "about"}


@pytest.mark.parametrize(
    "patch",
    [
        {"id": "other"},
        {"guid": "other"},
        {"params": ["slug", "about"]},
        {"negate": "yes"},
        {"label": 3},
    ],
)
def test_invalid_patches_are_rejected(sequential_ids, patch) -> None:
    editor = _editor(sequential_ids).add_condition("post_slug")
    with pytest.raises(InvalidPatchError):
        editor.update_condition("c1", patch)


def test_update_to_unknown_kind_is_rejected(sequential_ids) -> None:
    editor = _editor(sequential_ids).add_condition("post_slug")
    with pytest.raises(UnknownConditionKindError):
        editor.update_condition("c1", {"type": "future_kind"})


def test_unknown_kind_nodes_can_still_be_edited(sequential_ids) -> None:
    document = RuleDocument(conditions=(ConditionNode(id="x", type="future_kind"),))
    editor = _editor(sequential_ids, document).update_condition("x", {"label": "Later"})
    assert editor.node("x") == ConditionNode(id="x", type="future_kind", label="Later")


def test_delete_condition(sequential_ids) -> None:
    editor = (
        _editor(sequential_ids)
        .add_condition("post_slug")
        .add_condition("user_is_logged_in")
    )
    editor = editor.delete_condition("c1")

    assert editor.document.ids() == ["c2"]
    assert "c1" not in editor.editing
    assert "c1" not in editor.pending_config


@pytest.mark.parametrize(
    "operation",
    [
        lambda editor: editor.update_condition("missing", {"label": "x"}),
        lambda editor: editor.delete_condition("missing"),
        lambda editor: editor.begin_edit("missing"),
        lambda editor: editor.commit_edit("missing"),
        lambda editor: editor.state_of("missing"),
    ],
)
def test_unknown_condition_id(sequential_ids, operation) -> None:
    with pytest.raises(ConditionNotFoundError) as excinfo:
        operation(_editor(sequential_ids))
    assert str(excinfo.value) == "Condition not found: missing"


def test_begin_edit_reopens_a_condition(sequential_ids) -> None:
    editor = _editor(sequential_ids).add_condition("user_is_logged_in")
    editor = editor.begin_edit("c1")

    assert editor.state_of("c1") == NodeState.EDITING
    assert editor.needs_config("c1") is False


def test_set_action_and_logic(sequential_ids) -> None:
    editor = _editor(sequential_ids).set_action("hide").set_logic(Logic.OR)
    assert editor.document.action == Action.HIDE
    assert editor.document.logic == Logic.OR

    with pytest.raises(InvalidPatchError):
        editor.set_action("toggle")
    with pytest.raises(InvalidPatchError):
        editor.set_logic("xor")


def test_on_change_receives_every_new_document(sequential_ids) -> None:
    seen: list[RuleDocument] = []
    editor = _editor(sequential_ids, on_change=seen.append)

    editor = editor.add_condition("post_slug")
    editor = editor.update_condition("c1", {"slug": "about"})
    editor = editor.commit_edit("c1")
    editor = editor.set_action(Action.HIDE)

    assert len(seen) == 4
    assert seen[-1] == editor.document
    assert seen[1].conditions[0].params == {"slug": "about"}
