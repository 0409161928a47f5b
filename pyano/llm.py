"""A client for llama.cpp-style completion servers."""

from __future__ import annotations

import logging
import math
from collections.abc import AsyncIterator
from typing import Any

import httpx

from pyano.errors import (
    ModelNotFoundError,
    ProcessError,
    RequestFailedError,
    ServerUnavailableError,
)
from pyano.llm_options import LLMHTTPCallOptions
from pyano.model_interface import ModelManagerInterface
from pyano.model_types import ModelStatus
from pyano.stream_processing import ByteStream, StreamProcessor

logger = logging.getLogger(__name__)

_SAMPLING_FIELDS = (
    "temperature",
    "top_k",
    "top_p",
    "seed",
    "min_length",
    "max_length",
    "repetition_penalty",
)


def _check_status(response: httpx.Response) -> None:
    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        if response.is_server_error:
            raise ServerUnavailableError(str(exc)) from exc
        raise RequestFailedError(str(exc)) from exc


async def _iter_body(response: httpx.Response) -> AsyncIterator[bytes]:
    try:
        async for chunk in response.aiter_bytes():
            yield chunk
    finally:
        await response.aclose()


class LLM:
    """Sends prompts to a completion endpoint, optionally through a model manager."""

    def __init__(
        self,
        options: LLMHTTPCallOptions,
        client: httpx.AsyncClient | None = None,
        process_response: StreamProcessor | None = None,
        model_manager: ModelManagerInterface | None = None,
        model_name: str | None = None,
        auto_load: bool = False,
    ) -> None:
        self.options = options
        self.client = client if client is not None else httpx.AsyncClient()
        self.process_response = process_response
        self.model_manager = model_manager
        self.model_name = model_name
        self.auto_load = auto_load

    @staticmethod
    def builder() -> LLMBuilder:
        return LLMBuilder()

    def _completion_url(self) -> str:
        if self.options.server_url is None:
            raise ValueError("Server URL is missing")
        return f"{self.options.server_url}/completion"

    def build_payload(
        self, prompt_with_context: str, system_prompt: str, stream: bool
    ) -> dict[str, Any]:
        """The JSON body of a completion request."""
        if self.options.server_url is None:
            raise ValueError("Server URL is missing")
        template = self.options.prompt_template
        if template is None:
            raise ValueError("Prompt template is missing")
        full_prompt = template.replace("{system_prompt}", system_prompt).replace(
            "{user_prompt}", prompt_with_context
        )
        payload: dict[str, Any] = {"prompt": full_prompt, "stream": stream, "cache_prompt": True}
        for name in _SAMPLING_FIELDS:
            value = getattr(self.options, name)
            if value is None:
                continue
            if isinstance(value, float) and not math.isfinite(value):
                raise ValueError(f"{name} must be a finite number, got {value}")
            payload[name] = value
        return payload

    async def response_stream(self, prompt_with_context: str, system_prompt: str) -> ByteStream:
        """Start a streaming completion and return its (processed) byte chunks."""
        logger.info("Response stream not waiting")
        await self._ensure_model_loaded()
        payload = self.build_payload(prompt_with_context, system_prompt, True)
        request = self.client.build_request("POST", self._completion_url(), json=payload)
        try:
            response = await self.client.send(request, stream=True)
        except httpx.HTTPError as exc:
            raise RequestFailedError(str(exc)) from exc
        try:
            _check_status(response)
        except BaseException:
            await response.aclose()
            raise
        stream = _iter_body(response)
        if self.process_response is not None:
            return self.process_response(stream)
        return stream

    async def response(self, prompt_with_context: str, system_prompt: str) -> Any:
        """Run a completion to the end and return the server's JSON answer."""
        await self._ensure_model_loaded()
        payload = self.build_payload(prompt_with_context, system_prompt, False)
        try:
            response = await self.client.post(self._completion_url(), json=payload)
        except httpx.HTTPError as exc:
            raise RequestFailedError(str(exc)) from exc
        _check_status(response)
        return response.json()

    async def _ensure_model_loaded(self) -> None:
        logger.info("Checking model status")
        manager, name = self.model_manager, self.model_name
        if manager is None or name is None:
            return
        try:
            status = await manager.get_model_status(name)
        except ModelNotFoundError:
            logger.info("Model %s not found, will attempt to load", name)
            should_load = True
        else:
            should_load = not status.is_running
            if should_load:
                logger.info("Model %s has status %s, will attempt to load", name, status)
            else:
                logger.info("Model %s is already running", name)
        if not should_load:
            return
        logger.info("Loading model %s", name)
        await manager.load_model_by_name(name)
        status = await manager.get_model_status(name)
        if not status.is_running:
            raise ProcessError(f"Failed to load model: {name}. Status: {status}")
        logger.info("Model %s loaded successfully", name)


class LLMBuilder:
    """Collects the settings of an :class:`LLM`."""

    def __init__(self) -> None:
        self.options = LLMHTTPCallOptions()
        self.process_response: StreamProcessor | None = None
        self.model_manager: ModelManagerInterface | None = None
        self.model_name: str | None = None
        self.auto_load = False
        self.client: httpx.AsyncClient | None = None

    def with_model_manager(
        self, manager: ModelManagerInterface, model_name: str, auto_load: bool
    ) -> LLMBuilder:
        self.model_manager = manager
        self.model_name = model_name
        self.auto_load = auto_load
        return self

    def with_options(self, options: LLMHTTPCallOptions) -> LLMBuilder:
        self.options = options
        return self

    def with_process_response(self, process_fn: StreamProcessor) -> LLMBuilder:
        self.process_response = process_fn
        return self

    def with_client(self, client: httpx.AsyncClient) -> LLMBuilder:
        self.client = client
        return self

    def build(self) -> LLM:
        """Finish the options and create the LLM; raises if the URL or template is missing."""
        return LLM(
            options=self.options.build(),
            client=self.client,
            process_response=self.process_response,
            model_manager=self.model_manager,
            model_name=self.model_name,
            auto_load=self.auto_load,
        )