"""Command-line interface for gql-cachegen."""

import json
import logging
from pathlib import Path

import click
from pydantic import ValidationError

from .core.config import CodegenConfig
from .core.errors import CodegenError
from .core.loader import load_introspection, load_table_meta
from .core.pipeline import generate_definitions


def load_config(path: Path | None) -> CodegenConfig:
    """Read a JSON config file; no file means defaults."""
    if path is None:
        return CodegenConfig()
    try:
        return CodegenConfig.model_validate_json(path.read_text())
    except ValidationError as e:
        raise click.ClickException(f"Invalid config {path}:\n{e}") from e


@click.group()
@click.version_option()
def main():
    """Cache key and invalidation generator for GraphQL APIs.

    Derive query keys, cascade invalidation helpers and mutation keys from
    an introspected schema and its table metadata.
    """
    pass


@main.command()
@click.option(
    "--schema",
    "-s",
    required=True,
    type=click.Path(exists=True),
    help="Introspection JSON, or a GraphQL SDL file or directory.",
)
@click.option(
    "--tables",
    "-t",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Table metadata JSON (the _meta.tables query result).",
)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="JSON config with relationships and filters.",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    help="Write the derived definitions here instead of stdout.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output.",
)
def inspect(schema: str, tables: str, config: str | None, output: str | None, verbose: bool):
    """Derive cache definitions and dump them as JSON.

    Examples:

        gql-cachegen inspect --schema ./introspection.json --tables ./meta.json

        gql-cachegen inspect -s ./schema.graphql -t ./meta.json -c ./cachegen.json -o ./keys.json
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    schema_path = Path(schema).resolve()
    config_path = Path(config).resolve() if config else None
    echo = (lambda msg: click.echo(msg, err=True)) if output is None else click.echo

    try:
        cfg = load_config(config_path)
        if verbose:
            echo(f"Schema: {schema_path}")
            echo(f"Relationships: {len(cfg.query_keys.relationships)}")

        echo("Loading schema...")
        introspection = load_introspection(str(schema_path))
        table_meta = load_table_meta(tables)

        echo("Deriving cache definitions...")
        result = generate_definitions(introspection, table_meta, cfg)
    except CodegenError as e:
        raise click.ClickException(str(e)) from e

    if verbose:
        for name, count in result.summary().items():
            echo(f"  {name}: {count}")
    for warning in result.warnings:
        echo(f"Warning: {warning}")

    text = json.dumps(result.to_dict(), indent=2, default=str)
    if output is None:
        click.echo(text)
        return

    output_path = Path(output).resolve()
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(text + "\n")
    click.echo(f"Done! Wrote definitions for {len(result.key_factories)} tables to {output_path}")


if __name__ == "__main__":
    main()
