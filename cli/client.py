from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for a running utilisation service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def submit_file(
        self,
        path: Path,
        threshold: Optional[float] = None,
        capacity: Optional[int] = None,
        on_error: Optional[str] = None,
    ) -> Dict[str, Any]:
        if not path.is_file():
            raise typer.BadParameter(f"Path {path} is not a file.")

        params = {
            key: value
            for key, value in (
                ("threshold", threshold),
                ("capacity", capacity),
                ("on_error", on_error),
            )
            if value is not None
        }
        try:
            with path.open("rb") as handle:
                response = self._client.post(
                    "/utilisation",
                    params=params,
                    files={"file": (path.name, handle, "text/plain")},
                )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            typer.secho(
                f"Could not reach {self._config.base_url}: {exc}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=1) from exc

        payload = response.json()
        if not isinstance(payload, dict) or "status" not in payload:
            raise typer.BadParameter("Unexpected response payload when submitting file.")
        return payload

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: Any = None
        try:
            detail = exc.response.json().get("detail")
        except ValueError:
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
