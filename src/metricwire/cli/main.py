"""CLI for MetricWire."""

import logging
import sys
from pathlib import Path
from typing import Annotated, BinaryIO

import typer
from rich.console import Console
from rich.table import Table

from metricwire.executor.duckdb_executor import DuckDBExecutor
from metricwire.models.request import ResponseFormatType
from metricwire.parser.loader import DefinitionRegistry
from metricwire.response.errors import ResponseWriteError
from metricwire.response.response_data import ResponseData

app = typer.Typer(
    name="mw",
    help="MetricWire - render query results as json, jsonapi or csv",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def get_registry(definitions_dir: Path) -> DefinitionRegistry:
    registry = DefinitionRegistry()
    registry.load_directory(definitions_dir)
    return registry


@app.command("list")
def list_dimensions(
    definitions_dir: Annotated[
        Path, typer.Option("--dir", "-d", help="Definitions directory")
    ] = Path("./definitions"),
) -> None:
    """List the defined dimensions."""
    try:
        registry = get_registry(definitions_dir)
    except Exception as e:
        console.print(f"[red]Error loading definitions: {e}[/red]")
        raise typer.Exit(1)

    dims = registry.describe()
    if not dims:
        console.print("[yellow]No dimensions defined[/yellow]")
        return

    table = Table(title="Dimensions")
    table.add_column("Name", style="cyan")
    table.add_column("Key", style="green")
    table.add_column("Fields", style="yellow")
    table.add_column("Description")

    for dim in dims:
        table.add_row(
            dim["name"],
            dim["key"],
            ", ".join(dim["fields"]),
            dim["description"] or "-",
        )

    console.print(table)


@app.command()
def render(
    sql: Annotated[str, typer.Argument(help="Query to run; needs a dateTime column")],
    definitions_dir: Annotated[
        Path, typer.Option("--dir", "-d", help="Definitions directory")
    ] = Path("./definitions"),
    db_path: Annotated[str | None, typer.Option("--db", help="DuckDB database path")] = None,
    load: Annotated[
        list[str] | None,
        typer.Option("--load", "-l", help="TABLE=PATH of a .parquet or .csv file to query"),
    ] = None,
    output_format: Annotated[
        ResponseFormatType, typer.Option("--format", "-f", help="Output format")
    ] = ResponseFormatType.JSON,
    metrics: Annotated[
        str | None, typer.Option("--metrics", "-m", help="Comma-separated metric names")
    ] = None,
    dimensions: Annotated[
        str | None,
        typer.Option("--dimensions", "-g", help="Requested fields, e.g. 'country:id,name;product'"),
    ] = None,
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write to a file instead of stdout")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Run a query and write the result in the requested format."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr)

    try:
        registry = get_registry(definitions_dir)
        requested_fields = registry.parse_dimension_fields(dimensions)
    except Exception as e:
        err_console.print(f"[red]Error loading definitions: {e}[/red]")
        raise typer.Exit(1)

    executor = DuckDBExecutor(db_path)
    try:
        try:
            for spec in load or []:
                table_name, sep, path = spec.partition("=")
                if not sep or not table_name or not path:
                    raise ValueError(f"--load expects TABLE=PATH, got '{spec}'")
                executor.load_file(table_name, path)
        except Exception as e:
            err_console.print(f"[red]Load error: {e}[/red]")
            raise typer.Exit(1)

        try:
            result_set = executor.execute_result_set(sql, registry.dimensions.values())
        except Exception as e:
            err_console.print(f"[red]Query error: {e}[/red]")
            raise typer.Exit(1)

        # default to every metric the query returned
        metric_list = (
            [m.strip() for m in metrics.split(",")]
            if metrics
            else [c.name for c in result_set.schema.metric_columns]
        )

        response = ResponseData(
            result_set,
            metric_list,
            requested_fields,
            response_format=output_format,
            settings=registry.settings,
        )

        try:
            if output is not None:
                with open(output, "wb") as f:
                    response.write(f)
                err_console.print(f"[green]Wrote {output_format.value} to {output}[/green]")
            else:
                _write_stdout(
                    response,
                    sys.stdout.buffer,
                    newline=output_format != ResponseFormatType.CSV,
                )
        except ResponseWriteError as e:
            err_console.print(f"[red]Write error: {e}[/red]")
            raise typer.Exit(1)
    finally:
        executor.close()


def _write_stdout(response: ResponseData, sink: BinaryIO, newline: bool = True) -> None:
    response.write(sink)
    # csv already ends every record with one
    if newline:
        sink.write(b"\n")
    sink.flush()


if __name__ == "__main__":
    app()
