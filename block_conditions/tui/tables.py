import json
from typing import Any, Mapping, Optional

from rich.markup import escape
from rich.table import Column, Table

from block_conditions.catalog import ConditionKind, display_label
from block_conditions.models import (
    ConditionNode,
    Evaluation,
    NodeState,
    RuleDocument,
)
from block_conditions.settings import Settings
from block_conditions.tui.enums import (
    ACTION_STYLE,
    NODE_STATE_STYLE,
    UIStyle,
    bool_style,
)


def _format_value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


def _format_params(params: Mapping[str, Any]) -> str:
    if not params:
        return ""
    return "  ".join(f"{key}={_format_value(value)}" for key, value in params.items())


class CatalogTable:
    @staticmethod
    def kinds_table(kinds: list[ConditionKind]) -> Table:
        table = Table(
            Column(header="Kind", width=22),
            Column(header="Label", width=30),
            Column(header="Parameters", overflow="fold"),
            Column(header="Description", overflow="ellipsis"),
            expand=True,
            header_style="bold",
        )
        for kind in kinds:
            fields = []
            for item in kind.params:
                text = f"{item.name} ({item.kind.value})"
                if item.choices:
                    text = f"{text}: {' | '.join(item.choices)}"
                fields.append(text)
            params = "\n".join(fields) or f"[{UIStyle.DIM.value}]none[/]"
            table.add_row(kind.type.value, kind.label, params, kind.description)
        return table


class DocumentTable:
    @staticmethod
    def summary_block(document: RuleDocument, source: str):
        table = Table.grid(padding=(0, 2))
        table.add_column(style="bold")
        table.add_column()
        table.add_row("Document", escape(source))
        action_style = ACTION_STYLE[document.action]
        table.add_row("Action", f"[{action_style}]{document.action.value}[/]")
        table.add_row("Logic", document.logic.value)
        table.add_row("Conditions", str(len(document.conditions)))
        return table

    @staticmethod
    def conditions_table(
        conditions: tuple[ConditionNode, ...],
        states: Optional[Mapping[str, NodeState]] = None,
    ) -> Table:
        table = Table(
            Column(header="#", width=3, justify="right"),
            Column(header="Id", width=36, overflow="fold"),
            Column(header="Condition", overflow="ellipsis"),
            Column(header="Negate", width=7),
            Column(header="Parameters", overflow="fold"),
            expand=True,
            header_style="bold",
        )
        if states is not None:
            table.add_column("State", width=10)

        for index, node in enumerate(conditions, start=1):
            label = escape(display_label(node.label, node.type))
            if node.kind is None:
                label = f"{label} [{UIStyle.YELLOW.value}](unknown kind)[/]"
            row = [
                str(index),
                escape(node.id),
                label,
                "yes" if node.negate else "",
                escape(_format_params(node.params)),
            ]
            if states is not None:
                state = states.get(node.id, NodeState.COLLAPSED)
                style = NODE_STATE_STYLE[state]
                row.append(f"[{style}]{state.value}[/{style}]")
            table.add_row(*row)
        return table


class EvaluationTable:
    @staticmethod
    def results_table(evaluation: Evaluation) -> Table:
        table = Table(
            Column(header="Id", width=36, overflow="fold"),
            Column(header="Condition", overflow="ellipsis"),
            Column(header="Raw", width=6),
            Column(header="Result", width=7),
            expand=True,
            header_style="bold",
        )
        for item in evaluation.results:
            label = escape(item.label)
            if not item.known:
                label = f"{label} [{UIStyle.YELLOW.value}](fail-open)[/]"
            raw_style = bool_style(item.raw)
            result_style = bool_style(item.result)
            table.add_row(
                escape(item.node_id),
                label,
                f"[{raw_style}]{str(item.raw).lower()}[/{raw_style}]",
                f"[{result_style}]{str(item.result).lower()}[/{result_style}]",
            )
        return table

    @staticmethod
    def decision_block(evaluation: Evaluation, preview: bool = False):
        table = Table.grid(padding=(0, 2))
        table.add_column(style="bold")
        table.add_column()
        action_style = ACTION_STYLE[evaluation.action]
        table.add_row("Action", f"[{action_style}]{evaluation.action.value}[/]")
        table.add_row("Logic", evaluation.logic.value)
        table.add_row("Matched", str(evaluation.matched).lower())
        verdict = "render" if evaluation.should_render else "hidden"
        if preview:
            verdict = f"{verdict} (preview: always rendered)"
        table.add_row("Decision", verdict)
        return table


class SettingsTable:
    @staticmethod
    def settings_block(settings: Settings, source: str):
        table = Table.grid(padding=(0, 2))
        table.add_column(style="bold")
        table.add_column()
        table.add_row("Settings", escape(source))
        table.add_row("Timezone", escape(settings.timezone or "system (naive times)"))
        table.add_row("Preview", "on" if settings.preview else "off")
        functions = [
            f"{escape(name)} -> {escape(target)}"
            for name, target in sorted(settings.user_functions.items())
        ]
        table.add_row(
            "Functions", "\n".join(functions) or f"[{UIStyle.DIM.value}]none[/]"
        )
        return table
