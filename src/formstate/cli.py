"""CLI main entry point."""

import json
import logging
from pathlib import Path
from typing import Any

import click
import tomlkit
from tomlkit.exceptions import ParseError

from .config import Config
from .enums import FormStatus
from .errors import FormStateException
from .form import Form, create_form
from .log import setup as setup_log
from .schema import load_schema

logger = logging.getLogger(__name__)


def load_values(values_path: str) -> dict[str, Any]:
    """Read form values from a JSON or TOML file."""
    path = Path(values_path)
    content = path.read_text(encoding="utf-8")

    try:
        if path.suffix.lower() == ".toml":
            values = tomlkit.parse(content).unwrap()
        else:
            values = json.loads(content)
    except (ParseError, json.JSONDecodeError) as e:
        raise FormStateException(f"Invalid values file {values_path}: {e}") from e

    if not isinstance(values, dict):
        raise FormStateException(f"Values file {values_path} must contain a table/object")
    return values


def apply_values(form: Form, values: dict[str, Any]) -> None:
    """Write values into a form; lists for groups replace the group's items."""
    for key, value in values.items():
        group = form.get_group(key)
        if group is None:
            form.set_value(key, value)
            continue

        if not isinstance(value, list):
            raise FormStateException(f"Values for group {key} must be a list")
        group.clear()
        for item in value:
            if not isinstance(item, dict):
                raise FormStateException(f"Items of group {key} must be tables/objects")
            group.add_item(item, item_id=item.get("item_id"))


def dump(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


@click.group()
@click.option("--config", "-c", default=None, help="Configuration file path")
@click.pass_context
def cli(ctx, config: str | None):
    """formstate - schema-driven form state checker."""
    ctx.ensure_object(dict)
    try:
        cfg = Config.load_from_file(config) if config else Config()
    except FormStateException as e:
        raise click.ClickException(str(e))

    ctx.obj["config"] = cfg
    setup_log(logfile=cfg.log.file or None, level=cfg.log.level)


@cli.command(name="check")
@click.argument("schema", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--values",
    "-v",
    "values_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON or TOML file with the values to submit",
)
@click.pass_context
def check(ctx, schema: str, values_path: str | None):
    """Build a form from SCHEMA, apply values and submit it."""
    try:
        form = create_form(load_schema(schema), name=Path(schema).stem)
        if values_path:
            apply_values(form, load_values(values_path))
        result = form.submit()
    except FormStateException as e:
        logger.error(f"Application error: {e}")
        raise click.ClickException(str(e))

    click.echo(dump(result))
    if form.status == FormStatus.ERROR:
        ctx.exit(1)


@cli.command(name="schema")
@click.argument("schema", type=click.Path(exists=True, dir_okay=False))
def show_schema(schema: str):
    """Print the normalized form of SCHEMA."""
    try:
        normalized = load_schema(schema)
    except FormStateException as e:
        raise click.ClickException(str(e))

    click.echo(dump(normalized.model_dump(by_alias=True)))


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
