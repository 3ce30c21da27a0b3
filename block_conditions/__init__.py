from block_conditions.authoring import RuleEditor
from block_conditions.catalog import CATALOG, ConditionKind, ParamField, get_kind
from block_conditions.evaluator import evaluate, evaluate_node, explain
from block_conditions.models import (
    Action,
    ConditionNode,
    ConditionType,
    ContentFacts,
    Evaluation,
    EvaluationContext,
    Logic,
    NodeState,
    RuleDocument,
)
from block_conditions.parser import document_from_payload, document_to_payload
from block_conditions.rendering import BlockRenderer

__all__ = [
    "Action",
    "BlockRenderer",
    "CATALOG",
    "ConditionKind",
    "ConditionNode",
    "ConditionType",
    "ContentFacts",
    "Evaluation",
    "EvaluationContext",
    "Logic",
    "NodeState",
    "ParamField",
    "RuleDocument",
    "RuleEditor",
    "document_from_payload",
    "document_to_payload",
    "evaluate",
    "evaluate_node",
    "explain",
    "get_kind",
]
