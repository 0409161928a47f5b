"""The operations every model manager, local or remote, provides."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from pyano.llm_options import LLMHTTPCallOptions
from pyano.model_types import ModelConfig, ModelInfo, ModelStatus

if TYPE_CHECKING:
    from pyano.llm import LLM


class ModelManagerInterface(ABC):
    """Loads, unloads and reports on model server processes."""

    @abstractmethod
    async def load_model(self, config: ModelConfig) -> None:
        """Start the model described by ``config`` unless it already runs."""

    @abstractmethod
    async def unload_model(self, name: str) -> None:
        """Stop the named model and forget it."""

    @abstractmethod
    async def get_model_status(self, name: str) -> ModelStatus:
        """The status of the named model; raises ModelNotFoundError if unknown."""

    @abstractmethod
    async def list_models(self) -> list[ModelInfo]:
        """A summary of every loaded model."""

    @abstractmethod
    async def get_or_create_llm(
        self,
        model_name: str,
        options: LLMHTTPCallOptions | None,
        auto_load: bool,
    ) -> LLM:
        """An LLM client bound to the named model's server."""

    @abstractmethod
    async def load_model_by_name(self, name: str) -> None:
        """Load a model using its registered configuration."""