"""The interface shared by every tool an agent can call."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any


class Tool(ABC):
    """A named capability that takes JSON-like input and returns JSON-like output."""

    @abstractmethod
    def name(self) -> str:
        """The name of the tool."""

    @abstractmethod
    def description(self) -> str:
        """What the tool does and when to use it."""

    def parameters(self) -> dict[str, Any]:
        """A JSON schema of the input, in the style of function-calling APIs."""
        return {
            "type": "object",
            "properties": {
                "input": {
                    "type": "string",
                    "description": self.description(),
                }
            },
            "required": ["input"],
        }

    async def call(self, input: str) -> str:
        """Parse the input, run the tool and return its result as a JSON string."""
        result = await self.json_call(input)
        return json.dumps(result, separators=(",", ":"), ensure_ascii=False)

    async def json_call(self, input: str) -> Any:
        """Parse the input, run the tool and return its result as a JSON value."""
        parsed = await self.parse_input(input)
        return await self.run(parsed)

    @abstractmethod
    async def run(self, input: Any) -> Any:
        """Do the tool's work on already parsed input."""

    async def parse_input(self, input: str) -> Any:
        """Parse JSON input; anything that is not JSON becomes ``{"query": input}``."""
        try:
            return json.loads(input)
        except ValueError:
            return {"query": input}