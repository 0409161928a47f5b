from pathlib import Path

from pyano.model_registry import ModelRegistry
from pyano.model_types import ModelConfig, ModelType


def test_names_lists_builtin_models():
    registry = ModelRegistry(environ={})
    assert set(registry.names()) == {"qwen-7b", "llama-7b", "smolTalk", "granite"}


def test_unknown_model_gives_none():
    assert ModelRegistry(environ={}).get_config("missing-model") is None


def test_qwen_config_values():
    config = ModelRegistry(environ={}).get_config("qwen-7b")
    assert config.name == "qwen-7b"
    assert config.model_kind == "Qwen"
    assert config.model_type == ModelType.TEXT
    assert config.server_config.port == 8000
    assert config.server_config.ctx_size == 4096
    assert config.prompt_template.required_keys == ["system", "user"]


def test_smoltalk_template_has_prompt_placeholders():
    config = ModelRegistry(environ={}).get_config("smolTalk")
    template = config.prompt_template.template
    assert "{system_prompt}" in template
    assert "{user_prompt}" in template
    assert config.server_config.port == 5007
    assert config.server_config.batch_size == 1024


def test_granite_template_and_kind():
    config = ModelRegistry(environ={}).get_config("granite")
    assert config.model_kind == "LLaMa"
    assert config.prompt_template.template.startswith("<<|start_of_role|>system")
    assert config.memory_config.min_ram_gb == 3.5


def test_environment_overrides_model_path():
    registry = ModelRegistry(
        environ={"QWEN_MODEL_PATH": "/data/q.gguf", "Granite_MODEL_PATH": "/data/g.gguf"}
    )
    assert registry.get_config("qwen-7b").model_path == Path("/data/q.gguf")
    assert registry.get_config("granite").model_path == Path("/data/g.gguf")


def test_default_paths_end_with_model_file_names():
    config = ModelRegistry(environ={}).get_config("llama-7b")
    assert config.model_path.name == "Qwen2.5.1-Coder-7B-Instruct-Q4_0.gguf"


def test_get_config_returns_independent_copy():
    registry = ModelRegistry(environ={})
    first = registry.get_config("granite")
    first.server_config.port = 1
    first.prompt_template.required_keys.append("extra")
    second = registry.get_config("granite")
    assert second.server_config.port == 5008
    assert "extra" not in second.prompt_template.required_keys


def test_configs_round_trip_through_dict():
    registry = ModelRegistry(environ={})
    for name in registry.names():
        config = registry.get_config(name)
        assert ModelConfig.from_dict(config.to_dict()) == config