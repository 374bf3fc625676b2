from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, NoReturn, Optional

import typer

from app.schemas import UtilisationResponse
from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_result
from logging_config import configure_logging
from models.errors import DecodeError
from services.decoder import Decoder
from services.pipeline import ErrorPolicy, RunStatus, build_pipeline
from settings import get_settings
from storage.files import FileResultSink, open_token_source


@dataclass
class CLIState:
    config: CLIConfig


app = typer.Typer(
    help="Decode reversed vibration readings and report machine utilisation.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        _fail("CLI state is uninitialized.")
    return state


def _fail(message: str) -> NoReturn:
    typer.secho(f"Error: {message}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Service base URL for `submit` (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="HTTP timeout in seconds for `submit`.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log decoded values and debug detail."),
) -> None:
    """Entry point for the CLI."""
    configure_logging("DEBUG" if verbose else None)
    ctx.obj = CLIState(config=load_config(base_url=base_url, timeout=timeout))


@app.command("run")
def run_command(
    input_path: Optional[Path] = typer.Argument(
        None,
        dir_okay=False,
        help="Reading log (defaults to UTILISATION_INPUT_PATH or data.txt).",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        dir_okay=False,
        help="Results file (defaults to UTILISATION_OUTPUT_PATH or results.txt).",
    ),
    threshold: Optional[float] = typer.Option(None, "--threshold", "-t", help="Trigger level."),
    capacity: Optional[int] = typer.Option(
        None, "--capacity", "-c", min=1, help="Maximum number of readings to accept."
    ),
    on_error: Optional[ErrorPolicy] = typer.Option(
        None, "--on-error", case_sensitive=False, help="abort or skip undecodable tokens."
    ),
    dump_readings: bool = typer.Option(
        False, "--dump-readings/--no-dump-readings", help="Print every decoded reading."
    ),
) -> None:
    """Compute utilisation for a local reading log and write the results file."""
    settings = get_settings()
    source = input_path or Path(settings.input_path)
    destination = output or Path(settings.output_path)
    dump = dump_readings or settings.dump_readings

    try:
        pipeline = build_pipeline(
            threshold=threshold,
            capacity=capacity,
            error_policy=on_error,
            source=str(source),
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--threshold") from exc

    sink = FileResultSink(destination)
    try:
        with open_token_source(source) as tokens:
            report = pipeline.run(tokens, sink=sink)
    except UnicodeDecodeError:
        _fail(f"Input file {source} is not valid UTF-8 text.")
    except OSError as exc:
        _fail(f"Can't process {exc.filename or source}: {exc.strerror or exc}")

    if dump:
        for position, reading in enumerate(report.readings):
            typer.echo(f"{position}\t{reading.value:f}")
        if report.result is not None:
            typer.echo(f"\nPercentage Usage: {report.result.percentage:f} %\n")

    payload = UtilisationResponse.from_report(report, source=source.name).model_dump(mode="json")
    render_result(payload)

    if report.status is RunStatus.failed:
        sink.discard()
        raise typer.Exit(code=1)
    typer.echo(f"\nWrote {destination}")


@app.command("decode")
def decode_command(
    tokens: List[str] = typer.Argument(..., help="Reversed tokens, e.g. 5.21 for 12.5."),
) -> None:
    """Decode reversed tokens and print their true values."""
    decoder = Decoder()
    for token_index, token in enumerate(tokens):
        try:
            reading = decoder.decode(token, token_index)
        except DecodeError as exc:
            _fail(str(exc))
        typer.echo(f"{token}\t{reading.value:g}")


@app.command("submit")
def submit_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Reading log."),
    threshold: Optional[float] = typer.Option(None, "--threshold", "-t", help="Trigger level."),
    capacity: Optional[int] = typer.Option(
        None, "--capacity", "-c", min=1, help="Maximum number of readings to accept."
    ),
    on_error: Optional[ErrorPolicy] = typer.Option(
        None, "--on-error", case_sensitive=False, help="abort or skip undecodable tokens."
    ),
) -> None:
    """Send a reading log to a running utilisation service."""
    state = _get_state(ctx)
    client = ApiClient(state.config)
    ctx.call_on_close(client.close)

    typer.echo(f"Submitting {file} to {state.config.base_url} ...")
    payload = client.submit_file(
        file,
        threshold=threshold,
        capacity=capacity,
        on_error=on_error.value if on_error is not None else None,
    )
    typer.echo()
    render_result(payload)
    if payload.get("status") == RunStatus.failed.value:
        raise typer.Exit(code=1)
