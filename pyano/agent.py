"""Agents: a system prompt, a user prompt and an LLM to answer them."""

from __future__ import annotations

import json
import sys
from collections.abc import Sequence
from dataclasses import dataclass

import httpx

from pyano.llm import LLM
from pyano.tools.base import Tool


@dataclass
class Agent:
    """Sends its prompts to an LLM and collects the answer."""

    system_prompt: str | None = None
    user_prompt: str | None = None
    llm: LLM | None = None
    stream: bool = False
    name: str | None = None
    tools: list[Tool] | None = None

    async def invoke(self) -> str:
        """Run the prompts through the LLM, echoing the answer, and return it."""
        if self.llm is None:
            raise ValueError("LLM is required")
        if self.system_prompt is None:
            raise ValueError("System prompt is missing")
        if self.user_prompt is None:
            raise ValueError("User prompt is missing")

        pieces: list[str] = []
        if self.stream:
            chunks = await self.llm.response_stream(self.user_prompt, self.system_prompt)
            try:
                async for chunk in chunks:
                    text = bytes(chunk).decode("utf-8", errors="replace")
                    print(text, end="", flush=True)
                    pieces.append(text)
            except httpx.HTTPError as exc:
                print(f"Error streaming response: {exc}", file=sys.stderr)
        else:
            response = await self.llm.response(self.user_prompt, self.system_prompt)
            content = response.get("content") if isinstance(response, dict) else None
            if isinstance(content, str):
                print(f"Response: {content}")
                pieces.append(content)
            else:
                print(
                    "Error: `content` field is missing or not a string in the response",
                    file=sys.stderr,
                )
        return "".join(pieces)

    def get_tools(self) -> str:
        """Describe the agent's tools, one JSON object per line, inside ``<tools>`` tags."""
        if self.tools is None:
            return "<tools>\n</tools>"
        lines = [
            '{"name":"%s","description":"%s","parameters":%s}'
            % (
                tool.name(),
                tool.description(),
                json.dumps(
                    tool.parameters(), separators=(",", ":"), sort_keys=True, ensure_ascii=False
                ),
            )
            for tool in self.tools
        ]
        return "<tools>\n{}\n</tools>".format("\n".join(lines))


class AgentBuilder:
    """Collects an agent's settings; LLM and both prompts are required."""

    def __init__(self) -> None:
        self._system_prompt: str | None = None
        self._user_prompt: str | None = None
        self._stream = False
        self._llm: LLM | None = None
        self._name: str | None = None
        self._tools: list[Tool] | None = None

    def with_system_prompt(self, system_prompt: str) -> AgentBuilder:
        self._system_prompt = system_prompt
        return self

    def with_user_prompt(self, user_prompt: str) -> AgentBuilder:
        self._user_prompt = user_prompt
        return self

    def with_stream(self, stream: bool) -> AgentBuilder:
        self._stream = stream
        return self

    def with_llm(self, llm: LLM) -> AgentBuilder:
        self._llm = llm
        return self

    def with_name(self, name: str) -> AgentBuilder:
        self._name = name
        return self

    def with_tools(self, tools: Sequence[Tool]) -> AgentBuilder:
        self._tools = list(tools)
        return self

    def build(self) -> Agent:
        if self._llm is None:
            raise ValueError("LLM must be provided before building the Agent")
        if self._user_prompt is None:
            raise ValueError("User prompt must be provided before building the Agent")
        if self._system_prompt is None:
            raise ValueError("System prompt must be provided before building the Agent")
        return Agent(
            system_prompt=self._system_prompt,
            user_prompt=self._user_prompt,
            llm=self._llm,
            stream=self._stream,
            name=self._name,
            tools=self._tools,
        )