"""
Thin client for the DigitalOcean management API (App Platform, databases).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)


class DigitalOceanAPIError(Exception):
    """Non-2xx response from the DigitalOcean API."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


class DigitalOceanClient:
    """Bearer-token authenticated wrapper around the v2 REST endpoints the tools use."""

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.digitalocean.com/v2",
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        })

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        response = self._session.request(method, url, timeout=self.timeout, **kwargs)
        if not response.ok:
            try:
                message = response.json().get("message") or response.reason
            except ValueError:
                message = response.reason
            logger.warning("DigitalOcean API %s %s failed: %s %s", method, path, response.status_code, message)
            raise DigitalOceanAPIError(response.status_code, message)
        if not response.content:
            return {}
        return response.json()

    # Apps
    def list_apps(self) -> list:
        return self._request("GET", "/apps").get("apps", [])

    def get_app(self, app_id: str) -> dict:
        return self._request("GET", f"/apps/{app_id}")["app"]

    def update_app_spec(self, app_id: str, spec: dict) -> dict:
        return self._request("PUT", f"/apps/{app_id}", json={"spec": spec})["app"]

    # Deployments
    def list_deployments(self, app_id: str) -> list:
        return self._request("GET", f"/apps/{app_id}/deployments").get("deployments", [])

    def get_deployment(self, app_id: str, deployment_id: str) -> dict:
        return self._request("GET", f"/apps/{app_id}/deployments/{deployment_id}")["deployment"]

    def create_deployment(self, app_id: str, force_build: bool = False) -> dict:
        return self._request(
            "POST",
            f"/apps/{app_id}/deployments",
            json={"force_build": force_build},
        )["deployment"]

    def get_logs(
        self,
        app_id: str,
        deployment_id: str,
        component_name: str = "web",
        log_type: str = "RUN",
        tail_lines: int = 100,
    ) -> dict:
        return self._request(
            "GET",
            f"/apps/{app_id}/deployments/{deployment_id}/components/{component_name}/logs",
            params={"type": log_type, "tail_lines": tail_lines},
        )

    # Managed databases
    def list_databases(self) -> list:
        return self._request("GET", "/databases").get("databases", [])

    def get_database(self, database_id: str) -> dict:
        return self._request("GET", f"/databases/{database_id}")["database"]
