from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

import httpx
import typer

from cli.config import CLIConfig

_FILENAME_PATTERN = re.compile(r'filename="?([^";]+)"?')


class ApiClient:
    """Minimal HTTP client for the dashboard service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def get_overview(self) -> Dict[str, Any]:
        return self._get("/overview").json()

    def get_state(self) -> Dict[str, Any]:
        return self._get("/state").json()

    def get_series(self, day: Optional[str] = None) -> Dict[str, Any]:
        params = {"day": day} if day else None
        return self._get("/series", params=params).json()

    def get_records(self, filters: Dict[str, str]) -> List[Dict[str, Any]]:
        return self._get("/records", params=filters).json()

    def export_records(self, filters: Dict[str, str]) -> tuple[str, str]:
        """Return ``(filename, csv_text)`` for the filtered log."""
        try:
            response = self._client.get("/records/export", params=filters)
            if response.status_code == 404:
                raise typer.BadParameter("No records match the given filters.")
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        disposition = response.headers.get("content-disposition", "")
        match = _FILENAME_PATTERN.search(disposition)
        filename = match.group(1) if match else "export.csv"
        return filename, response.text

    def refresh(self) -> Dict[str, Any]:
        try:
            response = self._client.post("/refresh")
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    def _get(self, path: str, params: Optional[Dict[str, str]] = None) -> httpx.Response:
        try:
            response = self._client.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
