from typing import Mapping, Optional

from rich.console import Console
from rich.markup import escape

from block_conditions.catalog import grouped_kinds
from block_conditions.models import Action, Evaluation, NodeState, RuleDocument
from block_conditions.settings import Settings
from block_conditions.tui.enums import UIStyle
from block_conditions.tui.sections import UISection
from block_conditions.tui.tables import (
    CatalogTable,
    DocumentTable,
    EvaluationTable,
    SettingsTable,
)
from block_conditions.utils import compact_home_path


GROUP_STYLES = (
    UIStyle.BLUE.value,
    UIStyle.CYAN.value,
    UIStyle.MAGENTA.value,
    UIStyle.GREEN.value,
)


class ConditionsConsoleUI:
    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render_kinds(self) -> None:
        for index, (group, kinds) in enumerate(grouped_kinds().items()):
            self.console.print(
                UISection.wrap(
                    group.value,
                    CatalogTable.kinds_table(kinds),
                    style=GROUP_STYLES[index % len(GROUP_STYLES)],
                )
            )

    def render_document(
        self,
        document: RuleDocument,
        source: str,
        states: Optional[Mapping[str, NodeState]] = None,
    ) -> None:
        self.console.print(
            UISection.wrap(
                "rule document",
                DocumentTable.summary_block(document, compact_home_path(source)),
                style=UIStyle.BLUE.value,
            )
        )
        if not document.conditions:
            self.console.print(
                UISection.note(
                    "conditions",
                    "No conditions. The block is always shown."
                    if document.action == Action.SHOW
                    else "No conditions. The block is always hidden.",
                    style=UIStyle.DIM.value,
                )
            )
            return
        self.console.print(
            UISection.wrap(
                "conditions",
                DocumentTable.conditions_table(document.conditions, states),
                style=UIStyle.CYAN.value,
            )
        )

    def render_evaluation(
        self, evaluation: Evaluation, preview: bool = False
    ) -> None:
        if evaluation.results:
            self.console.print(
                UISection.wrap(
                    "conditions",
                    EvaluationTable.results_table(evaluation),
                    style=UIStyle.CYAN.value,
                )
            )
        rendered = evaluation.should_render or preview
        self.console.print(
            UISection.wrap(
                "decision",
                EvaluationTable.decision_block(evaluation, preview=preview),
                style=UIStyle.GREEN.value if rendered else UIStyle.RED.value,
            )
        )

    def render_validation(self, errors: list[str], warnings: list[str]) -> None:
        if errors:
            self.console.print(
                UISection.bullets("errors", errors, style=UIStyle.RED.value)
            )
        if warnings:
            self.console.print(
                UISection.bullets("warnings", warnings, style=UIStyle.YELLOW.value)
            )
        if not errors and not warnings:
            self.console.print(
                UISection.note(
                    "validate", "Document is valid.", style=UIStyle.GREEN.value
                )
            )

    def render_needs_config(self, condition_id: str, missing: list[str]) -> None:
        condition_id = escape(condition_id)
        self.console.print(
            UISection.note(
                "needs configuration",
                f"Condition [bold]{condition_id}[/bold] needs: {', '.join(missing)}\n"
                f"- block-conditions conditions update <document> {condition_id} "
                "--param NAME=VALUE",
                style=UIStyle.YELLOW.value,
            )
        )

    def render_saved(self, path: str, detail: str) -> None:
        self.console.print(
            UISection.note(
                "saved",
                f"{escape(detail)}\n{escape(compact_home_path(path))}",
                style=UIStyle.GREEN.value,
            )
        )

    def render_settings(self, settings: Settings, path: str) -> None:
        self.console.print(
            UISection.wrap(
                "settings",
                SettingsTable.settings_block(settings, compact_home_path(path)),
                style=UIStyle.BLUE.value,
            )
        )
