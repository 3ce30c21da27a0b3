from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Optional

import click
import yaml
from rich.console import Console

from block_conditions.authoring import RuleEditor
from block_conditions.catalog import (
    CATALOG,
    ConditionKind,
    display_label,
    get_kind,
    missing_params,
)
from block_conditions.context import (
    ImportFunctionResolver,
    context_from_payload,
    parse_now,
)
from block_conditions.errors import BlockConditionsError
from block_conditions.evaluator import explain
from block_conditions.log import configure_logging
from block_conditions.models import Action, ConditionType, Logic, RuleDocument
from block_conditions.parser import (
    document_from_payload,
    load_document,
    read_payload,
    save_document,
)
from block_conditions.schema import lint_document, validate_payload
from block_conditions.settings import (
    Settings,
    SettingsRepository,
    is_known_timezone,
)
from block_conditions.tui import ConditionsConsoleUI
from block_conditions.utils import parse_assignment, read_structured


KIND_VALUES = [kind.value for kind in CATALOG]
ACTION_VALUES = [action.value for action in Action]
LOGIC_VALUES = [logic.value for logic in Logic]

DOCUMENT_PATH = click.Path(path_type=Path, dir_okay=False)


def _load(path: Path) -> RuleDocument:
    try:
        return load_document(path)
    except BlockConditionsError as exc:
        raise click.ClickException(str(exc))


def _save(path: Path, document: RuleDocument) -> None:
    try:
        save_document(path, document)
    except OSError as exc:
        raise click.ClickException(f"Cannot write {path}: {exc}")


def _settings(obj: Dict[str, Any]) -> Settings:
    try:
        return SettingsRepository(obj.get("config_dir")).load()
    except BlockConditionsError as exc:
        raise click.ClickException(str(exc))


def _parse_params(kind: ConditionKind, pairs: tuple[str, ...]) -> dict[str, Any]:
    params: dict[str, Any] = {}
    for raw in pairs:
        try:
            name, value = parse_assignment(raw)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="--param")
        field = kind.param_field(name)
        if field is None:
            allowed = ", ".join(kind.required_params) or "none"
            raise click.BadParameter(
                f"{kind.type.value} has no parameter {name!r} (allowed: {allowed})",
                param_hint="--param",
            )
        try:
            params[name] = field.coerce(value)
        except BlockConditionsError as exc:
            raise click.BadParameter(str(exc), param_hint="--param")
    return params


def _settle(editor: RuleEditor, condition_id: str) -> RuleEditor:
    """Collapse a condition once every parameter it needs is set."""
    node = editor.node(condition_id)
    if missing_params(node.type, node.params):
        return editor
    return editor.commit_edit(condition_id)


def _render_editor(
    ui: ConditionsConsoleUI, editor: RuleEditor, path: Path, condition_id: str
) -> None:
    states = {node.id: editor.state_of(node.id) for node in editor.document.conditions}
    ui.render_document(editor.document, str(path), states=states)
    node = editor.node(condition_id)
    missing = missing_params(node.type, node.params)
    if editor.needs_config(condition_id) or missing:
        ui.render_needs_config(condition_id, missing)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("-v", "--verbose", count=True, help="Log more (repeat for debug).")
@click.option(
    "--config-dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Settings directory (default: ~/.config/block-conditions).",
)
@click.pass_context
def cli(ctx: click.Context, verbose: int, config_dir: Optional[Path]) -> None:
    """Author and evaluate block display conditions."""
    configure_logging(verbose)
    ctx.obj = {"config_dir": config_dir}


@cli.command(help="List the available condition kinds.")
def kinds() -> None:
    ConditionsConsoleUI(Console()).render_kinds()


@cli.command(help="Create an empty rule document.")
@click.argument("path", type=DOCUMENT_PATH)
@click.option(
    "--action",
    type=click.Choice(ACTION_VALUES, case_sensitive=False),
    default=Action.SHOW.value,
    show_default=True,
)
@click.option("--force", is_flag=True, help="Overwrite an existing document.")
def init(path: Path, action: str, force: bool) -> None:
    if path.exists() and not force:
        raise click.ClickException(f"Document already exists: {path}")
    _save(path, RuleDocument(action=Action(action.lower())))
    ConditionsConsoleUI(Console()).render_saved(str(path), "Created rule document.")


@cli.command(help="Show a rule document.")
@click.argument("path", type=DOCUMENT_PATH)
def show(path: Path) -> None:
    ConditionsConsoleUI(Console()).render_document(_load(path), str(path))


@cli.command(help="Validate a rule document.")
@click.argument("path", type=DOCUMENT_PATH)
def validate(path: Path) -> None:
    ui = ConditionsConsoleUI(Console())
    try:
        payload = read_payload(path)
    except BlockConditionsError as exc:
        raise click.ClickException(str(exc))

    errors = validate_payload(payload)
    warnings = lint_document(document_from_payload(payload))
    ui.render_validation(errors, warnings)
    if errors:
        raise click.exceptions.Exit(1)


@cli.command("evaluate", help="Evaluate a rule document against a context.")
@click.argument("path", type=DOCUMENT_PATH)
@click.option(
    "--context",
    "context_path",
    type=click.Path(path_type=Path, dir_okay=False, exists=True),
    default=None,
    help="YAML or JSON file with user, content, query and now facts.",
)
@click.option("--now", default=None, help="Evaluation time as an ISO timestamp.")
@click.option(
    "--preview/--no-preview", default=None, help="Editor preview: never hide."
)
@click.option("--quiet", "-q", is_flag=True, help="Print only true or false.")
@click.pass_obj
def evaluate_command(
    obj: Dict[str, Any],
    path: Path,
    context_path: Optional[Path],
    now: Optional[str],
    preview: Optional[bool],
    quiet: bool,
) -> None:
    document = _load(path)
    settings = _settings(obj)

    try:
        tz = settings.tzinfo()
        payload = read_structured(context_path) if context_path else None
        ctx = context_from_payload(
            payload,
            now=parse_now(now, tz) if now else None,
            resolver=ImportFunctionResolver(settings.user_functions),
            tz=tz,
        )
    except BlockConditionsError as exc:
        raise click.ClickException(str(exc))
    except (ValueError, yaml.YAMLError) as exc:
        raise click.ClickException(f"Cannot read context {context_path}: {exc}")

    is_preview = settings.preview if preview is None else preview
    evaluation = explain(document, ctx)
    if quiet:
        click.echo("true" if evaluation.should_render or is_preview else "false")
        return
    ConditionsConsoleUI(Console()).render_evaluation(evaluation, preview=is_preview)


@cli.command("action", help="Set whether matching conditions show or hide the block.")
@click.argument("path", type=DOCUMENT_PATH)
@click.argument("value", type=click.Choice(ACTION_VALUES, case_sensitive=False))
def action_command(path: Path, value: str) -> None:
    editor = RuleEditor.open(_load(path)).set_action(value.lower())
    _save(path, editor.document)
    ConditionsConsoleUI(Console()).render_document(editor.document, str(path))


@cli.command("logic", help="Set how conditions are combined.")
@click.argument("path", type=DOCUMENT_PATH)
@click.argument("value", type=click.Choice(LOGIC_VALUES, case_sensitive=False))
def logic_command(path: Path, value: str) -> None:
    editor = RuleEditor.open(_load(path)).set_logic(value.lower())
    _save(path, editor.document)
    ConditionsConsoleUI(Console()).render_document(editor.document, str(path))


@cli.command("config", help="Show or change settings.")
@click.option("--timezone", "timezone_name", default=None, help="IANA zone name.")
@click.option("--clear-timezone", is_flag=True, help="Use naive evaluation times.")
@click.option(
    "--preview/--no-preview", default=None, help="Default preview mode for evaluate."
)
@click.option(
    "--function",
    "functions",
    multiple=True,
    metavar="NAME=MODULE:ATTR",
    help="Register a user function.",
)
@click.option("--remove-function", multiple=True, metavar="NAME")
@click.pass_obj
def config_command(
    obj: Dict[str, Any],
    timezone_name: Optional[str],
    clear_timezone: bool,
    preview: Optional[bool],
    functions: tuple[str, ...],
    remove_function: tuple[str, ...],
) -> None:
    repo = SettingsRepository(obj.get("config_dir"))
    settings = _settings(obj)

    changes: dict[str, Any] = {}
    if timezone_name is not None:
        if not is_known_timezone(timezone_name):
            raise click.BadParameter(
                f"unknown timezone {timezone_name!r}", param_hint="--timezone"
            )
        changes["timezone"] = timezone_name
    if clear_timezone:
        changes["timezone"] = None
    if preview is not None:
        changes["preview"] = preview

    registered = dict(settings.user_functions)
    for raw in functions:
        try:
            name, target = parse_assignment(raw)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="--function")
        module_name, sep, attribute = target.strip().partition(":")
        if not sep or not module_name or not attribute:
            raise click.BadParameter(
                f"expected MODULE:ATTR for {name!r}, got {target!r}",
                param_hint="--function",
            )
        registered[name] = target.strip()
    for name in remove_function:
        registered.pop(name, None)
    if registered != settings.user_functions:
        changes["user_functions"] = registered

    if changes:
        settings = replace(settings, **changes)
        repo.save(settings)
    ConditionsConsoleUI(Console()).render_settings(settings, str(repo.config_path))


@cli.group(help="Add, update and remove conditions.")
def conditions() -> None:
    pass


@conditions.command("add", help="Append a condition to a rule document.")
@click.argument("path", type=DOCUMENT_PATH)
@click.argument("kind", type=click.Choice(KIND_VALUES, case_sensitive=False))
@click.option("--label", default="", help="Custom label for this condition.")
@click.option("--negate", is_flag=True, help="Reverse the result of this condition.")
@click.option("--param", "params", multiple=True, metavar="NAME=VALUE")
def conditions_add(
    path: Path, kind: str, label: str, negate: bool, params: tuple[str, ...]
) -> None:
    condition_kind = CATALOG[ConditionType(kind.lower())]
    patch: dict[str, Any] = dict(_parse_params(condition_kind, params))
    if negate:
        patch["negate"] = True

    editor = RuleEditor.open(_load(path)).add_condition(condition_kind.type, label)
    added = editor.last_added
    if patch:
        editor = editor.update_condition(added.id, patch)
    editor = _settle(editor, added.id)

    _save(path, editor.document)
    _render_editor(ConditionsConsoleUI(Console()), editor, path, added.id)


@conditions.command("update", help="Change a condition's kind, label or parameters.")
@click.argument("path", type=DOCUMENT_PATH)
@click.argument("condition_id")
@click.option(
    "--type",
    "type_value",
    type=click.Choice(KIND_VALUES, case_sensitive=False),
    default=None,
    help="Switch kind; existing parameters are discarded.",
)
@click.option("--label", default=None)
@click.option("--negate/--no-negate", default=None)
@click.option("--param", "params", multiple=True, metavar="NAME=VALUE")
@click.option("--unset", multiple=True, metavar="NAME", help="Clear a parameter.")
def conditions_update(
    path: Path,
    condition_id: str,
    type_value: Optional[str],
    label: Optional[str],
    negate: Optional[bool],
    params: tuple[str, ...],
    unset: tuple[str, ...],
) -> None:
    editor = RuleEditor.open(_load(path))
    try:
        node = editor.node(condition_id)
    except BlockConditionsError as exc:
        raise click.ClickException(str(exc))

    kind = get_kind(type_value.lower() if type_value else node.type)
    if kind is None and params:
        raise click.ClickException(
            f"Cannot set parameters on unknown condition kind {node.type!r}"
        )

    patch: dict[str, Any] = {}
    if type_value:
        patch["type"] = type_value.lower()
    if label is not None:
        patch["label"] = label
    if negate is not None:
        patch["negate"] = negate
    param_patch: dict[str, Any] = {name: None for name in unset}
    if kind is not None:
        param_patch.update(_parse_params(kind, params))
    if param_patch:
        patch["params"] = param_patch

    try:
        editor = editor.begin_edit(condition_id).update_condition(condition_id, patch)
    except BlockConditionsError as exc:
        raise click.ClickException(str(exc))
    editor = _settle(editor, condition_id)

    _save(path, editor.document)
    _render_editor(ConditionsConsoleUI(Console()), editor, path, condition_id)


@conditions.command("remove", help="Delete a condition from a rule document.")
@click.argument("path", type=DOCUMENT_PATH)
@click.argument("condition_id")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
def conditions_remove(path: Path, condition_id: str, yes: bool) -> None:
    editor = RuleEditor.open(_load(path))
    try:
        node = editor.node(condition_id)
    except BlockConditionsError as exc:
        raise click.ClickException(str(exc))

    if not yes:
        label = display_label(node.label, node.type)
        click.confirm(f"Delete condition {label!r}?", abort=True)

    editor = editor.delete_condition(condition_id)
    _save(path, editor.document)
    ConditionsConsoleUI(Console()).render_saved(str(path), f"Removed {condition_id}.")


def main() -> int:
    try:
        cli(standalone_mode=False)
    except click.exceptions.Abort:
        click.echo("Aborted!", err=True)
        return 1
    except click.exceptions.Exit as exc:
        code = exc.exit_code
        return code if isinstance(code, int) else 1
    except click.ClickException as exc:
        exc.show()
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
