"""
Tool catalogue and dispatch for the DigitalOcean tool bridge.

Each tool maps one typed request onto DigitalOceanClient and renders the
result as text for a tool-calling client.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, List

from mobile_api.cloud.do_client import DigitalOceanAPIError, DigitalOceanClient

_APP_ID = {"type": "string", "description": "The app ID"}
_DEPLOYMENT_ID = {"type": "string", "description": "The deployment ID"}
_DATABASE_ID = {"type": "string", "description": "The database ID (UUID)"}


def _schema(properties: Dict[str, Any] = None, required: List[str] = None) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "object", "properties": properties or {}}
    if required:
        schema["required"] = required
    return schema


TOOLS: List[Dict[str, Any]] = [
    {
        "name": "list_apps",
        "description": "List all DigitalOcean App Platform apps",
        "inputSchema": _schema(),
    },
    {
        "name": "get_app",
        "description": "Get details about a specific app",
        "inputSchema": _schema({"app_id": _APP_ID}, ["app_id"]),
    },
    {
        "name": "list_deployments",
        "description": "List deployments for an app",
        "inputSchema": _schema({"app_id": _APP_ID}, ["app_id"]),
    },
    {
        "name": "get_deployment",
        "description": "Get details about a specific deployment",
        "inputSchema": _schema({"app_id": _APP_ID, "deployment_id": _DEPLOYMENT_ID}, ["app_id", "deployment_id"]),
    },
    {
        "name": "get_app_logs",
        "description": "Get logs for an app deployment",
        "inputSchema": _schema(
            {
                "app_id": _APP_ID,
                "deployment_id": _DEPLOYMENT_ID,
                "component_name": {
                    "type": "string",
                    "description": 'Component name (e.g., "web")',
                    "default": "web",
                },
                "type": {
                    "type": "string",
                    "description": "Log type: BUILD, DEPLOY, or RUN",
                    "enum": ["BUILD", "DEPLOY", "RUN"],
                    "default": "RUN",
                },
                "tail_lines": {
                    "type": "number",
                    "description": "Number of lines to tail",
                    "default": 100,
                },
            },
            ["app_id", "deployment_id"],
        ),
    },
    {
        "name": "list_databases",
        "description": "List all DigitalOcean managed databases",
        "inputSchema": _schema(),
    },
    {
        "name": "get_database",
        "description": "Get details about a specific database",
        "inputSchema": _schema({"database_id": _DATABASE_ID}, ["database_id"]),
    },
    {
        "name": "get_database_connection",
        "description": "Get connection details for a database",
        "inputSchema": _schema({"database_id": _DATABASE_ID}, ["database_id"]),
    },
    {
        "name": "list_spaces",
        "description": "List all DigitalOcean Spaces (object storage)",
        "inputSchema": _schema(),
    },
    {
        "name": "create_deployment",
        "description": "Trigger a new deployment for an app",
        "inputSchema": _schema(
            {
                "app_id": _APP_ID,
                "force_build": {
                    "type": "boolean",
                    "description": "Force rebuild even if source hasn't changed",
                    "default": False,
                },
            },
            ["app_id"],
        ),
    },
    {
        "name": "update_env_vars",
        "description": "Update environment variables for an app",
        "inputSchema": _schema(
            {
                "app_id": _APP_ID,
                "env_vars": {
                    "type": "array",
                    "description": "Array of environment variables",
                    "items": {
                        "type": "object",
                        "properties": {
                            "key": {"type": "string"},
                            "value": {"type": "string"},
                            "scope": {
                                "type": "string",
                                "enum": ["RUN_TIME", "BUILD_TIME", "RUN_AND_BUILD_TIME"],
                                "default": "RUN_TIME",
                            },
                            "type": {
                                "type": "string",
                                "enum": ["GENERAL", "SECRET"],
                                "default": "GENERAL",
                            },
                        },
                        "required": ["key", "value"],
                    },
                },
            },
            ["app_id", "env_vars"],
        ),
    },
]

TOOLS_BY_NAME = {tool["name"]: tool for tool in TOOLS}


@dataclass
class ToolResult:
    text: str
    is_error: bool = False


def _dump(value: Any) -> str:
    return json.dumps(value, indent=2)


def _require(name: str, arguments: Dict[str, Any]) -> None:
    for key in TOOLS_BY_NAME[name]["inputSchema"].get("required", []):
        if arguments.get(key) in (None, ""):
            raise ValueError(f"Missing required argument for {name}: {key}")


def merge_env_vars(spec: Dict[str, Any], env_vars: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Upsert env vars by key into the first service of an app spec, in place.

    Returns the resulting env list (empty when the app spec has no services).
    """
    services = spec.get("services") or []
    if not services:
        return []

    envs = services[0].setdefault("envs", [])
    for new_env in env_vars:
        env_var = {
            "key": new_env["key"],
            "value": new_env["value"],
            "scope": new_env.get("scope") or "RUN_TIME",
            "type": new_env.get("type") or "GENERAL",
        }
        for index, existing in enumerate(envs):
            if existing.get("key") == env_var["key"]:
                envs[index] = env_var
                break
        else:
            envs.append(env_var)
    return envs


def _get_app_logs(client: DigitalOceanClient, args: Dict[str, Any]) -> str:
    data = client.get_logs(
        args["app_id"],
        args["deployment_id"],
        component_name=args.get("component_name") or "web",
        log_type=args.get("type") or "RUN",
        tail_lines=int(args.get("tail_lines") or 100),
    )
    historic = data.get("historic_urls") or []
    if historic:
        return f"Logs URL: {historic[0]}\n\nLive logs: {data.get('live_url') or 'Not available'}"
    return _dump(data)


def _get_database_connection(client: DigitalOceanClient, args: Dict[str, Any]) -> str:
    conn = client.get_database(args["database_id"])["connection"]
    info = {
        "host": conn.get("host"),
        "port": conn.get("port"),
        "user": conn.get("user"),
        "password": conn.get("password"),
        "database": conn.get("database"),
        "ssl": conn.get("ssl"),
        "uri": conn.get("uri"),
        "connection_string": (
            f"postgresql://{conn.get('user')}:{conn.get('password')}"
            f"@{conn.get('host')}:{conn.get('port')}/{conn.get('database')}?sslmode=require"
        ),
    }
    return _dump(info)


def _create_deployment(client: DigitalOceanClient, args: Dict[str, Any]) -> str:
    deployment = client.create_deployment(args["app_id"], force_build=bool(args.get("force_build", False)))
    return f"Deployment created successfully:\n{_dump(deployment)}"


def _update_env_vars(client: DigitalOceanClient, args: Dict[str, Any]) -> str:
    app = client.get_app(args["app_id"])
    spec = app["spec"]
    merge_env_vars(spec, args["env_vars"])
    updated = client.update_app_spec(args["app_id"], spec)
    services = updated.get("spec", {}).get("services") or [{}]
    return (
        "Environment variables updated successfully. App will redeploy.\n"
        f"{_dump(services[0].get('envs', []))}"
    )


_HANDLERS: Dict[str, Callable[[DigitalOceanClient, Dict[str, Any]], str]] = {
    "list_apps": lambda client, args: _dump(client.list_apps()),
    "get_app": lambda client, args: _dump(client.get_app(args["app_id"])),
    "list_deployments": lambda client, args: _dump(client.list_deployments(args["app_id"])),
    "get_deployment": lambda client, args: _dump(client.get_deployment(args["app_id"], args["deployment_id"])),
    "get_app_logs": _get_app_logs,
    "list_databases": lambda client, args: _dump(client.list_databases()),
    "get_database": lambda client, args: _dump(client.get_database(args["database_id"])),
    "get_database_connection": _get_database_connection,
    "list_spaces": lambda client, args: (
        "Spaces management requires the Spaces API (S3-compatible). "
        "Use the AWS S3 SDK or doctl CLI for Spaces operations."
    ),
    "create_deployment": _create_deployment,
    "update_env_vars": _update_env_vars,
}


def call_tool(client: DigitalOceanClient, name: str, arguments: Dict[str, Any] = None) -> ToolResult:
    """
    Run one tool call against the DigitalOcean API.

    Raises:
        ValueError: unknown tool name or missing required argument

    API failures are returned as an error result rather than raised.
    """
    if name not in _HANDLERS:
        raise ValueError(f"Unknown tool: {name}")

    arguments = arguments or {}
    _require(name, arguments)
    try:
        return ToolResult(text=_HANDLERS[name](client, arguments))
    except DigitalOceanAPIError as exc:
        return ToolResult(text=f"Error: {exc.message}\nStatus: {exc.status_code}", is_error=True)
