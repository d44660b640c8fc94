"""Command-line interface for bizrules.

Commands read rule and value documents from JSON files and print results on
stdout; logs go to stderr.
"""

import json
import sys
from typing import Any, NoReturn

import click

from bizrules.core.config import get_settings
from bizrules.core.logging import LoggingContext, configure_logging, get_logger
from bizrules.core.rules import (
    RuleDocumentError,
    collect_target_ids,
    evaluate_rule,
    extract_fields_from_rules,
    generate_rule_preview,
    load_rule,
    load_rules,
    resolve_effects,
    validate_rule,
)

EXIT_INVALID_INPUT = 2


def _read_json(path: str) -> Any:
    with open(path, encoding="utf-8") as fh:
        try:
            return json.load(fh)
        except json.JSONDecodeError as e:
            raise RuleDocumentError(f"{path}: invalid JSON: {e}") from e


def _fail(message: str) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(EXIT_INVALID_INPUT)


def _load_values(path: str) -> dict[str, Any]:
    values = _read_json(path)
    if not isinstance(values, dict):
        raise RuleDocumentError(f"{path}: values document must be a JSON object")
    return values


@click.group()
@click.version_option(version="0.1.0", prog_name="bizrules")
@click.option(
    "--debug/--no-debug",
    default=False,
    help="Enable debug logging",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    default=None,
    help="Set log level (overrides BIZRULES_LOG_LEVEL)",
)
def cli(debug: bool, log_level: str | None) -> None:
    """bizrules - validate and evaluate business rules."""
    settings = get_settings()
    overrides: dict[str, Any] = {}
    if debug:
        overrides["log_level"] = "DEBUG"
    if log_level:
        overrides["log_level"] = log_level
    configure_logging(settings.model_copy(update=overrides) if overrides else settings)


@cli.command()
@click.argument("rule_file", type=click.Path(exists=True, dir_okay=False))
def validate(rule_file: str) -> None:
    """Validate a rule file and print its errors as JSON."""
    try:
        rule = load_rule(_read_json(rule_file))
    except RuleDocumentError as e:
        _fail(str(e))

    errors = validate_rule(rule)
    click.echo(json.dumps([e.to_dict() for e in errors], indent=2))
    if errors:
        sys.exit(1)


@cli.command()
@click.argument("rule_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("values_file", type=click.Path(exists=True, dir_okay=False))
def evaluate(rule_file: str, values_file: str) -> None:
    """Evaluate a rule against a JSON object of field values."""
    try:
        rule = load_rule(_read_json(rule_file))
        values = _load_values(values_file)
    except RuleDocumentError as e:
        _fail(str(e))

    logger = get_logger(__name__)
    with LoggingContext(rule_id=rule.id or ""):
        passed = evaluate_rule(rule, values)
        logger.debug("Rule evaluated", passed=passed)
    click.echo("true" if passed else "false")


@cli.command()
@click.argument("rule_file", type=click.Path(exists=True, dir_okay=False))
def preview(rule_file: str) -> None:
    """Print a readable rendering of a rule."""
    try:
        rule = load_rule(_read_json(rule_file))
    except RuleDocumentError as e:
        _fail(str(e))

    if rule.root_group is not None:
        click.echo(generate_rule_preview(rule.root_group))


@cli.command()
@click.argument("rule_files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
def fields(rule_files: tuple[str, ...]) -> None:
    """Print the fields the given rules depend on, one per line."""
    try:
        rules = [rule for path in rule_files for rule in load_rules(_read_json(path))]
    except RuleDocumentError as e:
        _fail(str(e))

    for name in extract_fields_from_rules(rules):
        click.echo(name)


@cli.command()
@click.argument("rules_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("values_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--field", "field_ids", multiple=True, help="Field ID to report (repeatable)")
@click.option("--section", "section_ids", multiple=True, help="Section ID to report (repeatable)")
def effects(
    rules_file: str,
    values_file: str,
    field_ids: tuple[str, ...],
    section_ids: tuple[str, ...],
) -> None:
    """Print the effect map of a rule set as JSON.

    Without --field/--section, every target named by the rules is reported.
    """
    try:
        rules = load_rules(_read_json(rules_file))
        values = _load_values(values_file)
    except RuleDocumentError as e:
        _fail(str(e))

    if not field_ids and not section_ids:
        field_ids, section_ids = collect_target_ids(rules)

    result = resolve_effects(rules, values, field_ids, section_ids)
    click.echo(result.to_json(indent=2))


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
