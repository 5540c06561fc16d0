#!/usr/bin/env python3
"""MCP (Model Context Protocol) stdio server for taskflow.

Thin, deterministic wrapper around :func:`interface.tool_api.process_tool_call`.
One JSON-RPC 2.0 message per line on stdin, one response per line on stdout.
Logging goes to stderr so stdout stays protocol-clean.
"""

from __future__ import annotations

import io
import json
import logging
import sys
from contextlib import redirect_stdout
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TextIO, Union

from config import Settings, load_settings
from interface.operations import Operation
from interface.tool_api import ToolContext, process_tool_call
from interface.tool_specs import TOOL_SPECS

logger = logging.getLogger("taskflow.mcp")

MCP_VERSION = "2024-11-05"
SERVER_NAME = "taskflow-mcp"
SERVER_VERSION = "1.0.0"

RequestId = Optional[Union[int, str]]


@dataclass
class JsonRpcRequest:
    """JSON-RPC 2.0 request."""

    jsonrpc: str
    method: str
    id: RequestId = None
    params: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "JsonRpcRequest":
        return cls(
            jsonrpc=str(data.get("jsonrpc", "2.0") or "2.0"),
            method=str(data["method"]),
            id=data.get("id"),
            params=data.get("params", {}) if isinstance(data.get("params", {}), dict) else {},
        )


def json_rpc_response(id: RequestId, result: Any) -> Dict[str, Any]:
    """Create JSON-RPC success response."""
    return {"jsonrpc": "2.0", "id": id, "result": result}


def json_rpc_error(id: RequestId, code: int, message: str, data: Any = None) -> Dict[str, Any]:
    """Create JSON-RPC error response."""
    error: Dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": "2.0", "id": id, "error": error}


def get_tool_definitions() -> List[Dict[str, Any]]:
    """Return MCP tool definitions, one per operation, in declaration order."""
    tools: List[Dict[str, Any]] = []
    for op in Operation:
        spec = TOOL_SPECS[op.value]
        tools.append({"name": op.value, "description": spec["description"], "inputSchema": spec["schema"]})
    return tools


class MCPServer:
    """MCP stdio server exposing taskflow operations as tools."""

    def __init__(self, settings: Optional[Settings] = None, context: Optional[ToolContext] = None):
        self.settings = settings or load_settings()
        self.context = context or ToolContext.from_settings(self.settings)
        self._initialized = False

    @staticmethod
    def _json_content(payload: Any) -> Dict[str, Any]:
        return {"type": "text", "text": json.dumps(payload, ensure_ascii=False, indent=2)}

    def handle_request(self, request: JsonRpcRequest) -> Optional[Dict[str, Any]]:
        if request.method == "initialize":
            info = {
                "protocolVersion": MCP_VERSION,
                "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
                "capabilities": {"tools": {}},
            }
            return json_rpc_response(request.id, info)
        if request.method == "notifications/initialized":
            self._initialized = True
            return None
        if not self._initialized:
            return json_rpc_error(request.id, -32002, "Server not initialized")
        if request.method == "tools/list":
            return json_rpc_response(request.id, {"tools": get_tool_definitions()})
        if request.method == "tools/call":
            return self._handle_tools_call(request.id, request.params)
        if request.method == "ping":
            return json_rpc_response(request.id, {})
        return json_rpc_error(request.id, -32601, f"Method not found: {request.method}")

    def handle_line(self, line: str) -> Optional[Dict[str, Any]]:
        """Decode one wire line and answer it; blank lines and notifications yield None."""
        raw = line.strip()
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            return json_rpc_error(None, -32700, f"Parse error: {exc}")
        if not isinstance(data, dict) or "method" not in data:
            return json_rpc_error(data.get("id") if isinstance(data, dict) else None, -32600, "Invalid Request")
        return self.handle_request(JsonRpcRequest.from_dict(data))

    def _handle_tools_call(self, id: RequestId, params: Dict[str, Any]) -> Dict[str, Any]:
        tool_name = params.get("name")
        arguments = params.get("arguments", {})
        if Operation.parse(tool_name) is None:
            return json_rpc_error(id, -32602, f"Unknown tool: {tool_name}")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            return json_rpc_error(id, -32602, "arguments must be an object")

        leaked = io.StringIO()
        with redirect_stdout(leaked):
            result = process_tool_call(self.context, tool_name, arguments)
        leaked_text = leaked.getvalue()
        if leaked_text.strip():
            print(leaked_text, file=sys.stderr, end="")
            logger.warning("Tool %s wrote to stdout: %s", tool_name, leaked_text.strip().splitlines()[0])
        return json_rpc_response(
            id,
            {
                "content": [self._json_content(result.to_dict())],
                "isError": result.is_error,
            },
        )


def run_stdio(
    settings: Optional[Settings] = None,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
) -> int:
    """Serve newline-delimited JSON-RPC until the input stream closes."""
    source = stdin or sys.stdin
    sink = stdout or sys.stdout
    server = MCPServer(settings)
    logger.info("Serving %s (archive %s)", server.settings.task_file, server.settings.archive_file)
    for line in source:
        reply = server.handle_line(line)
        if reply is not None:
            sink.write(json.dumps(reply, ensure_ascii=False) + "\n")
            sink.flush()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Module entrypoint for `python -m interface.mcp_server`."""
    import argparse

    parser = argparse.ArgumentParser(prog="taskflow-mcp", add_help=True)
    parser.add_argument("--task-file", type=str, help="Store file (.json, .yaml or .yml). Overrides TASK_FILE_PATH.")
    parser.add_argument("--archive-file", type=str, help="Archive file. Overrides ARCHIVE_FILE_PATH.")
    parser.add_argument("--base-dir", type=str, help="Base directory for relative paths. Overrides TASK_MANAGER_BASE_DIR.")
    args = parser.parse_args(argv)

    settings = load_settings().with_overrides(
        task_file=args.task_file,
        archive_file=args.archive_file,
        base_dir=args.base_dir,
    )
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, settings.log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return run_stdio(settings)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
