"""A tool that runs shell commands and reports their output."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from pyano.tools.base import Tool

logger = logging.getLogger(__name__)


def _parse_command(item: Any) -> dict[str, Any]:
    if not isinstance(item, dict):
        raise ValueError(f"invalid command, expected an object: {item!r}")
    cmd = item.get("cmd")
    if not isinstance(cmd, str):
        raise ValueError("command needs a string field `cmd`")
    args = item.get("args", [])
    if not isinstance(args, list) or not all(isinstance(arg, str) for arg in args):
        raise ValueError("field `args` must be an array of strings")
    return {"cmd": cmd, "args": list(args)}


def _parse_commands(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        raise ValueError(f"invalid commands, expected an array: {value!r}")
    return [_parse_command(item) for item in value]


class CommandExecutor(Tool):
    """Runs a list of commands in order, stopping at the first that fails."""

    def __init__(self, platform: str = "linux") -> None:
        self.platform = platform

    def name(self) -> str:
        return "Command_Executor"

    def description(self) -> str:
        return (
            '"This tool let you run command on the terminal"\n'
            '            "The input should be an array with commands for the following '
            f'platform: {self.platform}"\n'
            '            "examle of input: [{ "cmd": "ls", "args": [] },'
            '{"cmd":"mkdir","args":["test"]}]"\n'
            '            "Should be a comma separated commands"\n'
            "            "
        )

    def parameters(self) -> dict[str, Any]:
        prompt = (
            "This tool let you run command on the terminal.\n"
            "        The input should be an array with commands for the following "
            f"platform: {self.platform}"
        )
        return {
            "description": prompt,
            "type": "object",
            "properties": {
                "commands": {
                    "description": "An array of command objects to be executed",
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "cmd": {
                                "type": "string",
                                "description": "The command to execute",
                            },
                            "args": {
                                "type": "array",
                                "items": {"type": "string"},
                                "default": [],
                                "description": "List of arguments for the command",
                            },
                        },
                        "required": ["cmd"],
                        "additionalProperties": False,
                        "description": "Object representing a command and its optional arguments",
                    },
                }
            },
            "required": ["commands"],
            "additionalProperties": False,
        }

    async def parse_input(self, input: str) -> list[dict[str, Any]] | None:
        """Accept ``{"commands": [...]}`` or a bare array; return None when neither fits."""
        import json

        logger.info("Parsing input: %s", input)
        try:
            data = json.loads(input)
        except ValueError as exc:
            logger.error("Failed to parse input: %s", exc)
            return None
        if isinstance(data, dict) and "commands" in data:
            try:
                return _parse_commands(data["commands"])
            except ValueError:
                pass
        try:
            return _parse_commands(data)
        except ValueError as exc:
            logger.error("Failed to parse input: %s", exc)
            return None

    async def run(self, input: Any) -> dict[str, Any]:
        commands = _parse_commands(input)
        results: list[dict[str, Any]] = []
        for command in commands:
            process = await asyncio.create_subprocess_exec(
                command["cmd"],
                *command["args"],
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await process.communicate()
            success = process.returncode == 0
            results.append(
                {
                    "cmd": command["cmd"],
                    "args": command["args"],
                    "stdout": stdout.decode("utf-8", errors="replace").strip(),
                    "stderr": stderr.decode("utf-8", errors="replace").strip(),
                    "status": success,
                }
            )
            if not success:
                raise RuntimeError(
                    f"Command {command['cmd']} failed with status: "
                    f"exit status: {process.returncode}"
                )
        return {"results": results}