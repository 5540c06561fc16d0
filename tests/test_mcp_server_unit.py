"""Unit tests for MCP server."""

import io
import json
from pathlib import Path

import pytest

from config import Settings
from interface import mcp_server
from interface.mcp_server import (
    MCP_VERSION,
    SERVER_NAME,
    JsonRpcRequest,
    MCPServer,
    get_tool_definitions,
    json_rpc_error,
    json_rpc_response,
)
from interface.operations import Operation


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(task_file=tmp_path / "tasks.json", archive_file=tmp_path / "tasks-archive.json", base_dir=tmp_path)


@pytest.fixture
def server(settings: Settings) -> MCPServer:
    srv = MCPServer(settings)
    srv.handle_request(JsonRpcRequest(jsonrpc="2.0", method="notifications/initialized"))
    return srv


def _call(server: MCPServer, name, arguments=None, id=1):
    params = {"name": name}
    if arguments is not None:
        params["arguments"] = arguments
    return server.handle_request(JsonRpcRequest(jsonrpc="2.0", method="tools/call", id=id, params=params))


def _payload(response):
    return json.loads(response["result"]["content"][0]["text"])


class TestJsonRpc:
    """Tests for JSON-RPC helpers."""

    def test_json_rpc_response(self):
        resp = json_rpc_response(1, {"foo": "bar"})
        assert resp == {"jsonrpc": "2.0", "id": 1, "result": {"foo": "bar"}}

    def test_json_rpc_error(self):
        err = json_rpc_error(2, -32600, "Invalid request")
        assert err["id"] == 2
        assert err["error"] == {"code": -32600, "message": "Invalid request"}

    def test_json_rpc_error_with_data(self):
        err = json_rpc_error(3, -32000, "Custom error", {"detail": "info"})
        assert err["error"]["data"] == {"detail": "info"}

    def test_request_from_dict_minimal(self):
        req = JsonRpcRequest.from_dict({"method": "ping"})
        assert req.method == "ping"
        assert req.id is None
        assert req.params == {}

    def test_request_from_dict_ignores_non_object_params(self):
        req = JsonRpcRequest.from_dict({"method": "tools/list", "id": "a", "params": [1, 2]})
        assert req.params == {}


class TestToolDefinitions:
    def test_one_tool_per_operation(self):
        tools = get_tool_definitions()
        assert [t["name"] for t in tools] == [op.value for op in Operation]

    def test_all_tools_have_required_fields(self):
        for tool in get_tool_definitions():
            assert tool["description"]
            assert tool["inputSchema"]["type"] == "object"


class TestLifecycle:
    def test_initialize(self, settings: Settings):
        srv = MCPServer(settings)
        resp = srv.handle_request(JsonRpcRequest(jsonrpc="2.0", method="initialize", id=1))
        result = resp["result"]
        assert result["protocolVersion"] == MCP_VERSION
        assert result["serverInfo"]["name"] == SERVER_NAME
        assert result["capabilities"] == {"tools": {}}

    def test_requests_before_initialized_are_rejected(self, settings: Settings):
        srv = MCPServer(settings)
        resp = srv.handle_request(JsonRpcRequest(jsonrpc="2.0", method="tools/list", id=7))
        assert resp["error"]["code"] == -32002

    def test_initialized_notification_has_no_response(self, settings: Settings):
        srv = MCPServer(settings)
        assert srv.handle_request(JsonRpcRequest(jsonrpc="2.0", method="notifications/initialized")) is None

    def test_ping_and_unknown_method(self, server: MCPServer):
        assert server.handle_request(JsonRpcRequest(jsonrpc="2.0", method="ping", id=2))["result"] == {}
        resp = server.handle_request(JsonRpcRequest(jsonrpc="2.0", method="resources/list", id=3))
        assert resp["error"]["code"] == -32601

    def test_tools_list(self, server: MCPServer):
        resp = server.handle_request(JsonRpcRequest(jsonrpc="2.0", method="tools/list", id=4))
        assert len(resp["result"]["tools"]) == len(Operation)


class TestToolsCall:
    def test_unknown_tool(self, server: MCPServer):
        resp = _call(server, "does_not_exist", {})
        assert resp["error"]["code"] == -32602

    def test_arguments_must_be_object(self, server: MCPServer):
        resp = _call(server, "list_requests", "nope")
        assert resp["error"]["code"] == -32602

    def test_success_is_not_error(self, server: MCPServer):
        resp = _call(
            server,
            "plan_task",
            {"originalRequest": "Demo", "tasks": [{"title": "One", "description": "first"}]},
        )
        assert resp["result"]["isError"] is False
        payload = _payload(resp)
        assert payload["status"] == "planned"
        assert payload["requestId"] == "req-1"

    def test_business_error_sets_is_error(self, server: MCPServer):
        resp = _call(server, "get_next_task", {"requestId": "req-99"})
        assert resp["result"]["isError"] is True
        assert _payload(resp)["code"] == "NOT_FOUND"

    def test_schema_error_sets_is_error(self, server: MCPServer):
        resp = _call(server, "get_next_task", {})
        assert resp["result"]["isError"] is True
        assert _payload(resp)["code"] == "INVALID_ARGUMENTS"

    def test_missing_arguments_default_to_empty(self, server: MCPServer):
        resp = _call(server, "list_requests")
        assert _payload(resp)["status"] == "requests_listed"

    def test_stdout_leaks_are_kept_off_the_channel(self, server: MCPServer, monkeypatch, capsys):
        monkeypatch.setattr(mcp_server, "process_tool_call", _Noisy(mcp_server.process_tool_call))
        resp = _call(server, "list_requests", {})
        captured = capsys.readouterr()
        assert "stray output" not in captured.out
        assert "stray output" in captured.err
        assert _payload(resp)["status"] == "requests_listed"


class _Noisy:
    def __init__(self, inner):
        self.inner = inner

    def __call__(self, ctx, name, arguments):
        print("stray output")
        return self.inner(ctx, name, arguments)


def test_run_stdio_handles_bad_lines(settings: Settings):
    lines = [
        "not json\n",
        "\n",
        json.dumps({"jsonrpc": "2.0", "id": 1, "params": {}}) + "\n",
        json.dumps({"jsonrpc": "2.0", "id": 2, "method": "initialize"}) + "\n",
        json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"}) + "\n",
        json.dumps({"jsonrpc": "2.0", "id": 3, "method": "ping"}) + "\n",
    ]
    sink = io.StringIO()
    assert mcp_server.run_stdio(settings, stdin=io.StringIO("".join(lines)), stdout=sink) == 0
    out = [json.loads(line) for line in sink.getvalue().splitlines()]
    assert [o.get("error", {}).get("code") for o in out] == [-32700, -32600, None, None]
    assert out[1]["id"] == 1
    assert out[3] == {"jsonrpc": "2.0", "id": 3, "result": {}}


def test_handle_line(settings: Settings):
    srv = MCPServer(settings)
    assert srv.handle_line("   \n") is None
    assert srv.handle_line("[1, 2]")["error"]["code"] == -32600
    assert srv.handle_line('{"id": 5, "method": "initialize"}')["id"] == 5
