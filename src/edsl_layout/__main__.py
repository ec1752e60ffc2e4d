"""CLI entry point for edsl-layout."""

import json
import logging
import sys

import click

from edsl_layout.config import parse_direction
from edsl_layout.errors import LayoutError
from edsl_layout.ir.document import graph_from_dict, graph_to_dict
from edsl_layout.layout.manager import LayoutManager


@click.command()
@click.argument("input", required=False, type=click.Path(exists=True))
@click.option("--layout", "-l", "layout", type=str, default=None, help="Layout algorithm (dagre, force, elk, adaptive)")
@click.option("--direction", "-d", "direction", type=str, default=None, help="Override direction (TB, BT, LR, RL)")
@click.option("--output", "-o", "output", type=str, default=None, help="Write output to this file instead of stdout")
@click.option("--no-cache", "no_cache", is_flag=True, help="Always recompute the layout")
@click.option("--sequential", "sequential", is_flag=True, help="Lay out containers on a single thread")
@click.option("--verbose", "-v", "verbose", is_flag=True, help="Log layout progress to stderr")
def main(
    input: str | None,
    layout: str | None,
    direction: str | None,
    output: str | None,
    no_cache: bool,
    sequential: bool,
    verbose: bool,
) -> None:
    """Lay out a JSON graph document and print the positioned document."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if input:
        try:
            with open(input) as f:
                text = f.read()
        except OSError as e:
            click.echo(f"error: cannot read '{input}': {e}", err=True)
            sys.exit(1)
    else:
        text = sys.stdin.read()

    try:
        doc = json.loads(text)
    except json.JSONDecodeError as e:
        click.echo(f"parse error:\n{e}", err=True)
        sys.exit(1)

    try:
        gir = graph_from_dict(doc)
        if layout is not None:
            gir.config = gir.config.replace(algorithm=layout.strip().lower())
        if direction is not None:
            gir.config = gir.config.replace(direction=parse_direction(direction))
    except (ValueError, LayoutError) as e:
        click.echo(f"error: {e}", err=True)
        sys.exit(1)

    manager = LayoutManager(enable_cache=not no_cache, parallel=False if sequential else None)
    try:
        manager.layout(gir)
    except LayoutError as e:
        click.echo(f"layout error: {e}", err=True)
        sys.exit(1)

    rendered = json.dumps(graph_to_dict(gir), indent=2) + "\n"
    if output:
        try:
            with open(output, "w") as f:
                f.write(rendered)
        except OSError as e:
            click.echo(f"error: cannot write '{output}': {e}", err=True)
            sys.exit(1)
    else:
        click.echo(rendered, nl=False)


if __name__ == "__main__":
    main()
