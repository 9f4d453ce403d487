from __future__ import annotations

import errno
import json
import os
from contextlib import suppress
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich.console import Console
from rich.table import Table

from pipetopo.config.loader import load_pipeline
from pipetopo.config.schema import PipelineSpec
from pipetopo.dag.decompose import decompose
from pipetopo.report.render_md import render_markdown
from pipetopo.report.summarize import build_summary
from pipetopo.translate.manifests import TranslateSettings, translate
from pipetopo.util.errors import PipelineError, TranslationError
from pipetopo.util.logging import configure_logging
from pipetopo.util.path_guard import check_regular_file

app = typer.Typer(help="Pipeline topology decomposer")
console = Console()
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _load_or_exit(pipeline_path: Path) -> PipelineSpec:
    try:
        return load_pipeline(pipeline_path)
    except PipelineError as exc:
        console.print(f"[red]Pipeline validation error:[/red] {exc}")
        raise typer.Exit(2) from exc


def _write_output(destination: Path, payload: str) -> None:
    check_regular_file(destination, label="output")
    flags = os.O_WRONLY | os.O_CREAT | os.O_TRUNC
    if hasattr(os, "O_NOFOLLOW"):
        flags |= os.O_NOFOLLOW
    fd: int | None = None
    try:
        fd = os.open(str(destination), flags, 0o644)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            fd = None
            f.write(payload)
    except OSError as exc:
        if exc.errno == errno.ELOOP:
            raise OSError(f"output path must not be symlink: {destination}") from exc
        raise
    finally:
        if fd is not None:
            with suppress(OSError):
                os.close(fd)


@app.callback()
def main(
    log_level: Annotated[
        str, typer.Option("--log-level", envvar="PIPETOPO_LOG_LEVEL")
    ] = "WARNING",
    log_json: Annotated[bool, typer.Option("--log-json")] = False,
) -> None:
    if log_level.upper() not in _LOG_LEVELS:
        console.print(f"[red]Invalid log level:[/red] {log_level}")
        raise typer.Exit(2)
    configure_logging(json_output=log_json, level=log_level)


@app.command("decompose")
def decompose_cmd(
    pipeline_path: Annotated[Path, typer.Argument(exists=True)],
    as_json: Annotated[bool, typer.Option("--json")] = False,
) -> None:
    pipeline = _load_or_exit(pipeline_path)
    result = decompose(pipeline.nodes, pipeline.edges)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
        raise typer.Exit(0)

    fan_out_table = Table(title="Fan-out Points")
    fan_out_table.add_column("node_id")
    fan_out_table.add_column("targets")
    for node_id, targets in result.fan_out.items():
        fan_out_table.add_row(node_id, ", ".join(targets))
    console.print(fan_out_table)

    chain_table = Table(title="Chains")
    chain_table.add_column("#", justify="right")
    chain_table.add_column("path")
    for idx, chain in enumerate(result.chains):
        chain_table.add_row(str(idx), " -> ".join(chain))
    console.print(chain_table)


@app.command()
def report(
    pipeline_path: Annotated[Path, typer.Argument(exists=True)],
    out: Annotated[Path | None, typer.Option("--out")] = None,
) -> None:
    pipeline = _load_or_exit(pipeline_path)
    md = render_markdown(build_summary(pipeline, decompose(pipeline.nodes, pipeline.edges)))
    if out is None:
        typer.echo(md)
        return
    try:
        _write_output(out, md + "\n")
    except (OSError, RuntimeError) as exc:
        console.print(f"[red]Failed to write report:[/red] {exc}")
        raise typer.Exit(2) from exc
    console.print(f"report: {out}")


@app.command()
def render(
    pipeline_path: Annotated[Path, typer.Argument(exists=True)],
    namespace: Annotated[str, typer.Option("--namespace", envvar="PIPETOPO_NAMESPACE")] = "default",
    prefix: Annotated[str, typer.Option("--prefix", envvar="PIPETOPO_NAME_PREFIX")] = "mocha",
    channel_kind: Annotated[
        str, typer.Option("--channel-kind", envvar="PIPETOPO_CHANNEL_KIND")
    ] = "InMemoryChannel",
    suffix: Annotated[str | None, typer.Option("--suffix")] = None,
) -> None:
    pipeline = _load_or_exit(pipeline_path)
    settings = TranslateSettings(
        namespace=namespace, name_prefix=prefix, channel_kind=channel_kind, suffix=suffix
    )
    try:
        manifests = translate(pipeline, decompose(pipeline.nodes, pipeline.edges), settings)
    except TranslationError as exc:
        console.print(f"[red]Translation error:[/red] {exc}")
        raise typer.Exit(2) from exc
    typer.echo(yaml.safe_dump_all(manifests, sort_keys=False), nl=False)


if __name__ == "__main__":
    app()
