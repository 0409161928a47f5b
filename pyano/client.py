"""A model manager that delegates to a remote model manager server over HTTP."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from pyano.errors import ModelError
from pyano.llm import LLM
from pyano.llm_options import LLMHTTPCallOptions
from pyano.model_interface import ModelManagerInterface
from pyano.model_types import ModelConfig, ModelInfo, ModelStatus
from pyano.stream_processing import llamacpp_process_stream, qwen_process_stream

logger = logging.getLogger(__name__)

_DEFAULT_TEMPLATE = "{system_prompt}\n{user_prompt}"


class ModelManagerClient(ModelManagerInterface):
    """Talks to a model manager server at ``base_url``."""

    def __init__(self, base_url: str, client: httpx.AsyncClient | None = None) -> None:
        self.base_url = base_url
        self._client = client if client is not None else httpx.AsyncClient()

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(method, f"{self.base_url}{path}", **kwargs)
        except httpx.HTTPError as exc:
            raise ModelError(f"Request failed: {exc}") from exc

    async def _get_json(self, path: str) -> Any:
        response = await self._send("GET", path)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ModelError(f"Request failed: {exc}") from exc
        try:
            return response.json()
        except ValueError as exc:
            raise ModelError(f"Failed to deserialize response: {exc}") from exc

    async def load_model(self, config: ModelConfig) -> None:
        # The server's answer status is not checked; only transport failures raise.
        await self._send("POST", "/models/load", json=config.to_dict())

    async def load_model_by_name(self, name: str) -> None:
        """Nothing to do: the remote server loads models from full configurations."""
        logger.info("Loading by name is handled by the server for model %s", name)

    async def unload_model(self, name: str) -> None:
        await self._send("POST", "/models/unload", json={"name": name})

    async def get_model_status(self, name: str) -> ModelStatus:
        data = await self._get_json(f"/models/status/{name}")
        try:
            return ModelStatus.from_json(data)
        except ValueError as exc:
            raise ModelError(f"Failed to deserialize response: {exc}") from exc

    async def list_models(self) -> list[ModelInfo]:
        data = await self._get_json("/models/list")
        try:
            if not isinstance(data, list):
                raise ValueError(f"expected a list of models, got {data!r}")
            return [ModelInfo.from_dict(item) for item in data]
        except ValueError as exc:
            raise ModelError(f"Failed to deserialize response: {exc}") from exc

    async def get_or_create_llm(
        self,
        model_name: str,
        options: LLMHTTPCallOptions | None = None,
        auto_load: bool = True,
    ) -> LLM:
        try:
            await self.get_model_status(model_name)
        except ModelError:
            data = await self._get_json(f"/models/config/{model_name}")
            try:
                config = ModelConfig.from_dict(data)
            except ValueError as exc:
                raise ModelError(f"Failed to deserialize response: {exc}") from exc
            await self.load_model(config)

        info = await self._get_json(f"/models/server/{model_name}")
        if not isinstance(info, dict):
            info = {}
        host = info.get("host")
        if not isinstance(host, str):
            host = "localhost"
        port = info.get("port")
        if not isinstance(port, int) or isinstance(port, bool) or port < 0:
            port = 8000
        template = info.get("prompt_template")
        if not isinstance(template, str):
            template = _DEFAULT_TEMPLATE

        llm_options = options if options is not None else LLMHTTPCallOptions()
        llm_options = llm_options.with_server_url(f"http://{host}:{port}").with_prompt_template(
            template
        )
        processor = qwen_process_stream if info.get("model_kind") == "Qwen" else llamacpp_process_stream
        return LLM.builder().with_options(llm_options).with_process_response(processor).build()