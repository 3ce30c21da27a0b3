from block_conditions.constants import CONDITIONS_ATTRIBUTE
from block_conditions.models import ContentFacts, EvaluationContext
from block_conditions.rendering import BlockRenderer


def _block(policy) -> dict:
    return {
        "blockName": "core/paragraph",
        "attrs": {CONDITIONS_ATTRIBUTE: policy},
        "innerHTML": "<p>Hello</p>",
    }


def _renderer(preview: bool = False, **facts) -> BlockRenderer:
    return BlockRenderer(lambda: EvaluationContext(**facts), preview=preview)


MEMBERS_ONLY = {
    "action": "show",
    "conditions": [{"id": "a", "type": "user_is_logged_in"}],
}


def test_blocks_without_conditions_render() -> None:
    renderer = _renderer()
    assert renderer.render_block("<p>Hi</p>", {"blockName": "core/paragraph"}) == "<p>Hi</p>"
    assert renderer.render_block("<p>Hi</p>", {"attrs": {}}) == "<p>Hi</p>"
    assert renderer.render_block("<p>Hi</p>", {"attrs": "broken"}) == "<p>Hi</p>"


def test_hidden_block_renders_nothing() -> None:
    renderer = _renderer(is_logged_in=False)
    assert renderer.should_render(_block(MEMBERS_ONLY)) is False
    assert renderer.render_block("<p>Hello</p>", _block(MEMBERS_ONLY)) == ""
    assert renderer.pre_render_block(None, _block(MEMBERS_ONLY)) is False


def test_visible_block_passes_through() -> None:
    renderer = _renderer(is_logged_in=True)
    assert renderer.render_block("<p>Hello</p>", _block(MEMBERS_ONLY)) == "<p>Hello</p>"
    assert renderer.pre_render_block(None, _block(MEMBERS_ONLY)) is None


def test_preview_never_hides() -> None:
    renderer = _renderer(preview=True, is_logged_in=False)
    assert renderer.render_block("<p>Hello</p>", _block(MEMBERS_ONLY)) == "<p>Hello</p>"


def test_hide_with_no_conditions_hides() -> None:
    renderer = _renderer()
    assert renderer.should_render(_block({"action": "hide", "conditions": []})) is False


def test_context_is_built_per_decision() -> None:
    calls: list[int] = []

    def provider() -> EvaluationContext:
        calls.append(1)
        return EvaluationContext(content=ContentFacts(id=7))

    renderer = BlockRenderer(provider)
    policy = {"action": "hide", "conditions": [{"id": "a", "type": "post_id", "postId": 7}]}

    assert renderer.should_render(_block(policy)) is False
    assert renderer.should_render(_block(policy)) is False
    assert len(calls) == 2


def test_custom_attribute_name() -> None:
    renderer = BlockRenderer(EvaluationContext, attribute="displayRules")
    block = {"attrs": {"displayRules": {"action": "hide", "conditions": []}}}
    assert renderer.should_render(block) is False
    assert renderer.should_render(_block({"action": "hide", "conditions": []})) is True
