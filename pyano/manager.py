"""A local model manager that starts, tracks and stops model server processes."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

from pyano.errors import ModelMemoryError, ModelNotFoundError, ProcessError
from pyano.llm import LLM
from pyano.llm_options import LLMHTTPCallOptions
from pyano.model_interface import ModelManagerInterface
from pyano.model_registry import ModelRegistry
from pyano.model_types import ModelConfig, ModelInfo, ModelStatus, ModelType
from pyano.process import ModelProcess
from pyano.stream_processing import StreamProcessor, llamacpp_process_stream, qwen_process_stream
from pyano.system_memory import SystemMemory

logger = logging.getLogger(__name__)

ProcessFactory = Callable[[ModelConfig], Any]

_LOAD_LOCK_TIMEOUT = 5.0
_MEMORY_LOCK_TIMEOUT = 10.0
_LOCK_ATTEMPT = 1.0
_LOCK_RETRY_DELAY = 0.1


def get_processor_for_model(config: ModelConfig) -> StreamProcessor:
    """The stream processor that suits the model's kind."""
    if config.model_type == ModelType.TEXT and config.model_kind == "Qwen":
        return qwen_process_stream
    return llamacpp_process_stream


class ModelManager(ModelManagerInterface):
    """Runs model servers on this machine, unloading old ones when memory is short."""

    def __init__(
        self,
        registry: ModelRegistry | None = None,
        system_memory: SystemMemory | None = None,
        process_factory: ProcessFactory | None = None,
    ) -> None:
        self.registry = registry if registry is not None else ModelRegistry()
        self.system_memory = system_memory if system_memory is not None else SystemMemory()
        self._process_factory: ProcessFactory = (
            process_factory if process_factory is not None else ModelProcess
        )
        self._models: dict[str, Any] = {}
        self._lock = asyncio.Lock()
        self._lock_in_progress = False
        self._last_lock_holder: str | None = None

    @asynccontextmanager
    async def _holding(self, operation: str) -> AsyncIterator[None]:
        self._lock_in_progress = True
        self._last_lock_holder = operation
        try:
            yield
        finally:
            self._lock_in_progress = False
            self._lock.release()

    async def _acquire_models_lock(self, operation: str, timeout: float) -> None:
        logger.info("Starting lock acquisition for operation: %s", operation)
        logger.info("Current models count: %d", len(self._models))
        if not self._lock.locked():
            await self._lock.acquire()
            logger.info("Successfully acquired immediate write lock")
            return
        logger.info("Immediate write lock not available, falling back to timed attempt")
        start = time.monotonic()
        attempts = 0
        while time.monotonic() - start < timeout:
            attempts += 1
            remaining = timeout - (time.monotonic() - start)
            try:
                await asyncio.wait_for(self._lock.acquire(), max(min(_LOCK_ATTEMPT, remaining), 0))
            except asyncio.TimeoutError:
                if attempts % 2 == 0:
                    logger.info("Still trying to acquire write lock - attempt #%d", attempts)
                await asyncio.sleep(_LOCK_RETRY_DELAY)
            else:
                logger.info("Successfully acquired write lock after %d attempts", attempts)
                return
        logger.error("Failed to acquire write lock after %d attempts", attempts)
        raise ProcessError(
            f"Lock acquisition timeout after {attempts} attempts for operation: {operation}"
        )

    def _record_lock_event(self, event: str) -> None:
        logger.info("Lock Event [%d]: %s", int(time.time()), event)

    async def load_model(self, config: ModelConfig) -> None:
        self._record_lock_event(f"Starting load_model for {config.name}")
        existing = self._models.get(config.name)
        if existing is not None and existing.status.is_running:
            self._record_lock_event(f"Model {config.name} already loaded")
            return

        self._record_lock_event("Checking memory requirements")
        self.system_memory.debug_memory_info()
        try:
            await self._manage_memory(config.memory_config.min_ram_gb)
        except Exception as exc:
            logger.error("Failed to allocate memory for model %s: %s", config.name, exc)
            raise
        logger.info("Memory requirements satisfied for model %s", config.name)

        self._record_lock_event("Acquiring write lock for model insertion")
        try:
            await asyncio.wait_for(self._lock.acquire(), _LOAD_LOCK_TIMEOUT)
        except asyncio.TimeoutError:
            self._record_lock_event("Timeout acquiring write lock in load_model")
            raise ProcessError("Timeout acquiring write lock") from None
        async with self._holding("load_model"):
            process = self._process_factory(config)
            try:
                await process.start()
            except Exception as exc:
                logger.error("Failed to start model process: %s", exc)
                self._record_lock_event(f"Failed to start model process: {exc}")
                raise
            logger.info("Successfully started model process: %s", config.name)
            self._models[config.name] = process
            self._record_lock_event(f"Successfully loaded model {config.name}")

    async def load_model_by_name(self, name: str) -> None:
        config = self.registry.get_config(name)
        if config is None:
            raise ModelNotFoundError(f"Configuration not found for model: {name}")
        await self.load_model(config)

    async def unload_model(self, name: str) -> None:
        await self._lock.acquire()
        async with self._holding("unload_model"):
            process = self._models.get(name)
            if process is None:
                raise ModelNotFoundError(name)
            await process.stop()
            del self._models[name]

    async def get_model_status(self, name: str) -> ModelStatus:
        process = self._models.get(name)
        if process is None:
            raise ModelNotFoundError(name)
        return process.status

    async def list_models(self) -> list[ModelInfo]:
        return [
            ModelInfo(
                name=process.config.name,
                model_type=process.config.model_type,
                status=process.status,
                last_used=process.last_used,
                server_port=process.config.server_config.port,
            )
            for process in self._models.values()
        ]

    async def get_or_create_llm(
        self,
        model_name: str,
        options: LLMHTTPCallOptions | None = None,
        auto_load: bool = True,
    ) -> LLM:
        config = self.registry.get_config(model_name)
        if config is None:
            logger.error("Model configuration not found for: %s", model_name)
            raise ModelNotFoundError(f"Configuration not found for model: {model_name}")

        if auto_load:
            try:
                running = (await self.get_model_status(model_name)).is_running
            except ModelNotFoundError:
                running = False
            if running:
                logger.info("Model %s is already running", model_name)
            else:
                logger.info("Loading model: %s", model_name)
                await self.load_model(config)
                status = await self.get_model_status(model_name)
                if not status.is_running:
                    logger.error("Model %s failed to load properly", model_name)
                    raise ProcessError(f"Failed to load model: {model_name}. Status: {status}")
                logger.info("Model %s loaded successfully", model_name)

        server = config.server_config
        port = server.port if server.port is not None else 8000
        llm_options = (options if options is not None else LLMHTTPCallOptions())
        llm_options = llm_options.with_server_url(f"http://{server.host}:{port}")
        llm_options = llm_options.with_prompt_template(config.prompt_template.template)
        if llm_options.temperature is None:
            llm_options = llm_options.with_temperature(config.defaults.temperature)

        return (
            LLM.builder()
            .with_model_manager(self, model_name, auto_load)
            .with_options(llm_options)
            .with_process_response(get_processor_for_model(config))
            .build()
        )

    async def _manage_memory(self, required_gb: float) -> None:
        logger.info("Starting memory management for %.1f GB", required_gb)
        initial = self.system_memory.get_memory_status()
        logger.info(
            "Initial memory status: available %.1f GB, total %.1f GB, usage %.1f%%",
            initial.available_gb,
            initial.total_gb,
            initial.usage_percentage,
        )
        if self.system_memory.has_available_memory(required_gb):
            logger.info("Sufficient memory available (%.1f GB required)", required_gb)
            return

        await self._acquire_models_lock("manage_memory", _MEMORY_LOCK_TIMEOUT)
        async with self._holding("manage_memory"):
            if not self._models:
                logger.info("No models currently loaded to unload")
                raise ModelMemoryError("No models available to unload for freeing memory")

            oldest_first = sorted(self._models.items(), key=lambda item: item[1].last_used)
            freed = 0.0
            unloaded: list[str] = []
            failed: list[tuple[str, str]] = []
            for model_name, process in oldest_first:
                logger.info("Attempting to unload model: %s", model_name)
                try:
                    await process.stop()
                except Exception as exc:
                    logger.error("Failed to unload model %s: %s", model_name, exc)
                    failed.append((model_name, str(exc)))
                    continue
                freed += process.config.memory_config.min_ram_gb
                unloaded.append(model_name)
                del self._models[model_name]
                logger.info(
                    "Unloaded model: %s - Total freed memory: %.1f GB", model_name, freed
                )
                if self.system_memory.has_available_memory(required_gb):
                    logger.info("Successfully freed enough memory")
                    return

            status = self.system_memory.get_memory_status()
            raise ModelMemoryError(
                f"Could not allocate enough memory ({required_gb:.1f} GB required) "
                "after unloading attempt.\n"
                "Memory Status:\n"
                f"- Available: {status.available_gb:.1f} GB\n"
                f"- Total: {status.total_gb:.1f} GB\n"
                f"- Usage: {status.usage_percentage:.1f}%\n"
                "Unloading Results:\n"
                f"- Successfully unloaded: {unloaded!r} (freed {freed:.1f} GB)\n"
                f"- Failed to unload: {failed!r}"
            )

    async def debug_lock_status(self) -> str:
        """Whether the models lock is held and by which operation it was last taken."""
        return (
            f"Lock in progress: {self._lock_in_progress}, "
            f"Last operation: {self._last_lock_holder!r}"
        )

    async def diagnose_locks(self) -> str:
        """A one-line description of the models lock's state."""
        if not self._lock.locked():
            return "Read lock available - no write lock held"
        return "All locks currently held"