from __future__ import annotations

from typing import Any, Dict, Iterable

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_result(payload: Dict[str, Any]) -> None:
    """Print a utilisation response, local or remote, as plain text."""
    echo_heading("Utilisation Result")
    utilisation = payload.get("utilisation")
    echo_key_values(
        [
            ("source", payload.get("source")),
            ("status", payload.get("status")),
            ("threshold", payload.get("threshold")),
            ("capacity", payload.get("capacity")),
            ("reading_count", payload.get("reading_count")),
            ("triggered_count", payload.get("triggered_count")),
            ("utilisation", f"{utilisation:f} %" if utilisation is not None else "n/a"),
        ]
    )
    if payload.get("terminated_early"):
        typer.secho("Ingestion stopped before the end of the input.", fg=typer.colors.YELLOW)
    if payload.get("detail"):
        typer.echo(f"detail: {payload['detail']}")

    errors = payload.get("errors") or []
    typer.echo()
    echo_heading("Errors")
    if errors:
        for error in errors:
            typer.echo(
                f"  - token {error.get('token_index')} {error.get('token')!r}: {error.get('reason')}"
            )
        hidden = (payload.get("error_count") or 0) - len(errors)
        if hidden > 0:
            typer.echo(f"  ... and {hidden} more")
    else:
        typer.echo("No errors recorded.")
