"""An HTTP front end for a model manager, and the command that starts it."""

from __future__ import annotations

import argparse
import asyncio
import ipaddress
import json
import logging
import sys
from collections.abc import Sequence
from typing import Any

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from pyano.errors import ConfigError, ModelError
from pyano.model_interface import ModelManagerInterface
from pyano.model_types import ModelConfig

logger = logging.getLogger(__name__)

DEFAULT_ADDRESS = "127.0.0.1:8090"


class _BadRequest(Exception):
    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _parse_addr(addr: str) -> tuple[str, int]:
    """Split ``ip:port`` (``[ip6]:port`` for IPv6) into host and port."""
    host, sep, port_text = addr.rpartition(":")
    if not sep or not host:
        raise ConfigError(f"Invalid address: {addr!r}")
    bracketed = host.startswith("[") and host.endswith("]")
    if bracketed:
        host = host[1:-1]
    try:
        ip = ipaddress.ip_address(host)
    except ValueError as exc:
        raise ConfigError(f"Invalid address: {exc}") from exc
    if ip.version == 6 and not bracketed:
        raise ConfigError(f"Invalid address: {addr!r}")
    if not port_text.isdigit() or int(port_text) > 65535:
        raise ConfigError(f"Invalid address: invalid port {port_text!r}")
    return str(ip), int(port_text)


def _error(exc: Exception) -> JSONResponse:
    return JSONResponse({"error": str(exc)}, status_code=500)


async def _read_json(request: Request) -> Any:
    body = await request.body()
    try:
        return json.loads(body)
    except ValueError as exc:
        raise _BadRequest(400, f"Invalid JSON body: {exc}") from exc


class ModelManagerServer:
    """Serves a model manager's load, unload, status and list operations."""

    def __init__(self, manager: ModelManagerInterface) -> None:
        self.manager = manager

    def app(self) -> Starlette:
        """The web application with all routes bound to this server's manager."""
        routes = [
            Route("/models/load", self._handle_load_model, methods=["POST"]),
            Route("/models/unload", self._handle_unload_model, methods=["POST"]),
            Route("/models/status/{name}", self._handle_get_status, methods=["GET"]),
            Route("/models/list", self._handle_list_models, methods=["GET"]),
        ]
        return Starlette(routes=routes)

    async def run(self, addr: str) -> None:
        """Serve on ``addr`` until stopped; raises ConfigError for a bad address."""
        print(f"Model Manager server starting on {addr}")
        host, port = _parse_addr(addr)
        config = uvicorn.Config(self.app(), host=host, port=port, log_level="info")
        await uvicorn.Server(config).serve()

    async def _handle_load_model(self, request: Request) -> JSONResponse:
        try:
            data = await _read_json(request)
            try:
                config = ModelConfig.from_dict(data)
            except (ValueError, KeyError, TypeError) as exc:
                raise _BadRequest(422, f"Invalid model configuration: {exc}") from exc
        except _BadRequest as exc:
            return JSONResponse({"error": exc.message}, status_code=exc.status_code)
        try:
            await self.manager.load_model(config)
        except Exception as exc:
            return _error(exc)
        return JSONResponse(None)

    async def _handle_unload_model(self, request: Request) -> JSONResponse:
        """Takes the model name as a JSON string or as ``{"name": ...}``."""
        try:
            data = await _read_json(request)
        except _BadRequest as exc:
            return JSONResponse({"error": exc.message}, status_code=exc.status_code)
        name = data.get("name") if isinstance(data, dict) else data
        if not isinstance(name, str):
            return JSONResponse({"error": "Expected a model name"}, status_code=422)
        try:
            await self.manager.unload_model(name)
        except Exception as exc:
            return _error(exc)
        return JSONResponse(None)

    async def _handle_get_status(self, request: Request) -> JSONResponse:
        name = request.path_params["name"]
        try:
            status = await self.manager.get_model_status(name)
        except Exception as exc:
            return _error(exc)
        return JSONResponse(status.to_json())

    async def _handle_list_models(self, request: Request) -> JSONResponse:
        try:
            models = await self.manager.list_models()
        except Exception as exc:
            return _error(exc)
        return JSONResponse([info.to_dict() for info in models])


def main(argv: Sequence[str] | None = None) -> int:
    """Start a model manager server on this machine."""
    from pyano.manager import ModelManager

    parser = argparse.ArgumentParser(prog="pyano-model-manager", description=__doc__)
    parser.add_argument("--addr", default=DEFAULT_ADDRESS, help="address to listen on")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)

    server = ModelManagerServer(ModelManager())
    try:
        asyncio.run(server.run(args.addr))
    except ModelError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())