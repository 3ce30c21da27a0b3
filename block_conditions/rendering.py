"""Host render call sites: decide per block whether its output is kept."""

from typing import Any, Callable, Mapping

from block_conditions.constants import CONDITIONS_ATTRIBUTE
from block_conditions.evaluator import evaluate
from block_conditions.models import EvaluationContext
from block_conditions.parser import document_from_payload


class BlockRenderer:
    def __init__(
        self,
        context_provider: Callable[[], EvaluationContext],
        *,
        preview: bool = False,
        attribute: str = CONDITIONS_ATTRIBUTE,
    ) -> None:
        self.context_provider = context_provider
        self.preview = preview
        self.attribute = attribute

    def policy(self, block: Mapping[str, Any]) -> Any:
        attrs = block.get("attrs")
        if not isinstance(attrs, Mapping):
            return None
        return attrs.get(self.attribute)

    def should_render(self, block: Mapping[str, Any]) -> bool:
        # Editors and previews always see every block.
        if self.preview:
            return True
        policy = self.policy(block)
        if not policy:
            return True
        return evaluate(document_from_payload(policy), self.context_provider())

    def pre_render_block(self, pre_render: Any, block: Mapping[str, Any]) -> Any:
        if not self.should_render(block):
            return False
        return pre_render

    def render_block(self, content: str, block: Mapping[str, Any]) -> str:
        if not self.should_render(block):
            return ""
        return content
