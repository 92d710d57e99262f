from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
import typer

from cli.config import CLIConfig


class BackendClient:
    """Minimal HTTP client for the dashboard backend's read endpoints."""

    def __init__(self, config: CLIConfig, transport: Optional[httpx.BaseTransport] = None) -> None:
        self._config = config
        headers = {"Authorization": f"Bearer {config.token}"} if config.token else {}
        self._client = httpx.Client(
            base_url=config.base_url,
            timeout=config.timeout,
            headers=headers,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def get_trashbin(self, identifier: str) -> Dict[str, Any]:
        payload = self._get_json(f"/api/v1/trashbin/{identifier}", f"Trashbin {identifier}")
        if not isinstance(payload, dict):
            raise typer.BadParameter("Unexpected response payload when fetching trashbin.")
        return payload

    def get_sensor_ids(self, identifier: str) -> List[str]:
        sensors = self.get_trashbin(identifier).get("sensors")
        if not isinstance(sensors, list):
            raise typer.BadParameter(f"Trashbin {identifier} has no sensor list.")
        return [str(sensor_id) for sensor_id in sensors]

    def get_project(self, project_id: str) -> Dict[str, Any]:
        payload = self._get_json(f"/api/v1/project/{project_id}", f"Project {project_id}")
        if not isinstance(payload, dict):
            raise typer.BadParameter("Unexpected response payload when fetching project.")
        return payload

    def get_sensor_history(self, sensor_id: str) -> List[Dict[str, Any]]:
        payload = self._get_json(f"/api/v1/history/sensor/{sensor_id}", f"Sensor {sensor_id}")
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise typer.BadParameter(
                f"Unexpected response payload when fetching history of sensor {sensor_id}."
            )
        return payload

    def _get_json(self, path: str, label: str) -> Any:
        try:
            response = self._client.get(path)
            if response.status_code == 404:
                raise typer.BadParameter(f"{label} was not found.")
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
        if not response.content:
            return None
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail") or data.get("message")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
