"""Running agents one after another, each fed the previous agent's output."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)

_UNNAMED = "Unnamed Agent"


@dataclass(frozen=True)
class ExecutionRecord:
    agent_name: str
    input: str
    output: str
    timestamp: datetime


class ExecutionRecorder(ABC):
    """Somewhere to persist each agent execution."""

    @abstractmethod
    def store_execution(self, agent_name: str, input: str, output: str) -> None:
        """Record one execution; raising stops the chain."""


class Chain:
    """A sequence of agents; agent i's output becomes agent i+1's user prompt."""

    def __init__(self) -> None:
        self._agents: list[Any] = []
        self._recorder: ExecutionRecorder | None = None
        self._memory_log: list[ExecutionRecord] = []

    def with_recorder(self, recorder: ExecutionRecorder) -> Chain:
        self._recorder = recorder
        return self

    def add_agent(self, agent: Any) -> Chain:
        self._agents.append(agent)
        return self

    async def run(self) -> None:
        previous_output: str | None = None
        for agent in self._agents:
            logger.info("EXECUTING Agent = %r", agent.name)
            if previous_output is not None:
                agent.user_prompt = previous_output
            user_input = agent.user_prompt or ""
            output = await agent.invoke()
            agent_name = agent.name if agent.name is not None else _UNNAMED
            self._memory_log.append(
                ExecutionRecord(
                    agent_name=agent_name,
                    input=user_input,
                    output=output,
                    timestamp=datetime.now(timezone.utc),
                )
            )
            if self._recorder is not None:
                self._recorder.store_execution(agent_name, user_input, output)
            previous_output = output

    def memory_logs(self) -> list[ExecutionRecord]:
        """A copy of the records of every execution so far."""
        return list(self._memory_log)