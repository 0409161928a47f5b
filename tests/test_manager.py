from datetime import datetime, timezone

import pytest

from pyano.errors import ModelMemoryError, ModelNotFoundError, ProcessError
from pyano.manager import ModelManager, get_processor_for_model
from pyano.model_registry import ModelRegistry
from pyano.model_types import ModelStatus
from pyano.stream_processing import llamacpp_process_stream, qwen_process_stream
from pyano.system_memory import SystemMemory

GIB = 1024 * 1024 * 1024


class FakeProcess:
    def __init__(self, config, memory=None, fail=False):
        self.config = config
        self.status = ModelStatus.stopped()
        self.last_used = datetime.now(timezone.utc)
        self.memory = memory
        self.fail = fail
        self.stopped = False

    async def start(self):
        if self.fail:
            self.status = ModelStatus.error("cannot start")
            raise ProcessError("cannot start")
        self.status = ModelStatus.running()
        self.last_used = datetime.now(timezone.utc)

    async def stop(self):
        self.stopped = True
        self.status = ModelStatus.stopped()
        if self.memory is not None:
            self.memory["used"] = 0


def make_manager(memory=None, fail=False):
    memory = memory if memory is not None else {"total": 16 * GIB, "used": 0}
    created = []

    def factory(config):
        process = FakeProcess(config, memory, fail)
        created.append(process)
        return process

    manager = ModelManager(
        registry=ModelRegistry(environ={}),
        system_memory=SystemMemory(reader=lambda: (memory["total"], memory["used"])),
        process_factory=factory,
    )
    return manager, created, memory


@pytest.mark.asyncio
async def test_load_model_makes_it_running_and_listed():
    manager, created, _ = make_manager()
    await manager.load_model_by_name("qwen-7b")
    assert await manager.get_model_status("qwen-7b") == ModelStatus.running()
    infos = await manager.list_models()
    assert [info.name for info in infos] == ["qwen-7b"]
    assert infos[0].server_port == 8000
    assert len(created) == 1


@pytest.mark.asyncio
async def test_loading_running_model_twice_starts_once():
    manager, created, _ = make_manager()
    await manager.load_model_by_name("qwen-7b")
    await manager.load_model_by_name("qwen-7b")
    assert len(created) == 1


@pytest.mark.asyncio
async def test_unknown_model_errors():
    manager, _, _ = make_manager()
    with pytest.raises(ModelNotFoundError):
        await manager.get_model_status("missing")
    with pytest.raises(ModelNotFoundError):
        await manager.unload_model("missing")
    with pytest.raises(ModelNotFoundError, match="Configuration not found for model: missing"):
        await manager.load_model_by_name("missing")
    with pytest.raises(ModelNotFoundError):
        await manager.get_or_create_llm("missing", None, False)


@pytest.mark.asyncio
async def test_unload_stops_and_forgets():
    manager, created, _ = make_manager()
    await manager.load_model_by_name("granite")
    await manager.unload_model("granite")
    assert created[0].stopped is True
    assert await manager.list_models() == []
    with pytest.raises(ModelNotFoundError):
        await manager.get_model_status("granite")


@pytest.mark.asyncio
async def test_failed_start_is_not_registered():
    manager, _, _ = make_manager(fail=True)
    with pytest.raises(ProcessError):
        await manager.load_model_by_name("qwen-7b")
    assert await manager.list_models() == []


@pytest.mark.asyncio
async def test_get_or_create_llm_without_auto_load():
    manager, created, _ = make_manager()
    llm = await manager.get_or_create_llm("qwen-7b", None, False)
    config = manager.registry.get_config("qwen-7b")
    assert created == []
    assert llm.options.server_url == "http://localhost:8000"
    assert llm.options.prompt_template == config.prompt_template.template
    assert llm.model_manager is manager
    assert llm.model_name == "qwen-7b"
    assert llm.process_response is qwen_process_stream


@pytest.mark.asyncio
async def test_get_or_create_llm_with_auto_load_starts_model():
    manager, created, _ = make_manager()
    llm = await manager.get_or_create_llm("smolTalk", None, True)
    assert len(created) == 1
    assert await manager.get_model_status("smolTalk") == ModelStatus.running()
    assert llm.options.server_url == "http://localhost:5007"
    assert llm.auto_load is True


@pytest.mark.asyncio
async def test_low_memory_without_models_fails():
    memory = {"total": 16 * GIB, "used": 16 * GIB}
    manager, _, _ = make_manager(memory)
    with pytest.raises(ModelMemoryError, match="No models available"):
        await manager.load_model_by_name("qwen-7b")


@pytest.mark.asyncio
async def test_low_memory_unloads_oldest_model():
    manager, created, memory = make_manager()
    await manager.load_model_by_name("qwen-7b")
    memory["used"] = memory["total"]
    await manager.load_model_by_name("llama-7b")
    assert created[0].stopped is True
    assert [info.name for info in await manager.list_models()] == ["llama-7b"]


@pytest.mark.asyncio
async def test_memory_still_short_after_unloading():
    manager, created, memory = make_manager()
    await manager.load_model_by_name("qwen-7b")
    memory["used"] = memory["total"]
    created[0].memory = None
    with pytest.raises(ModelMemoryError, match="Could not allocate enough memory"):
        await manager.load_model_by_name("llama-7b")
    assert await manager.list_models() == []


def test_processor_selection():
    registry = ModelRegistry(environ={})
    assert get_processor_for_model(registry.get_config("qwen-7b")) is qwen_process_stream
    assert get_processor_for_model(registry.get_config("granite")) is llamacpp_process_stream


@pytest.mark.asyncio
async def test_lock_diagnostics_when_idle():
    manager, _, _ = make_manager()
    await manager.load_model_by_name("qwen-7b")
    assert await manager.diagnose_locks() == "Read lock available - no write lock held"
    status = await manager.debug_lock_status()
    assert status.startswith("Lock in progress: False")
    assert "load_model" in status