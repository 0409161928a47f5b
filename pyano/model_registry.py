"""Built-in configurations for the models the manager knows how to start."""

from __future__ import annotations

import copy
import logging
import os
from collections.abc import Mapping
from pathlib import Path

from pyano.model_types import (
    ModelConfig,
    ModelDefaults,
    ModelMemoryConfig,
    ModelType,
    PromptTemplate,
    ServerConfig,
)

logger = logging.getLogger(__name__)

_IM_TEMPLATE = (
    "<|im_start|>system\n{system}\n<|im_end|>\n<|im_start|>user\n{user}\n<|im_end|>"
)

_LLAMA3_TEMPLATE = (
    "<|begin_of_text|><|start_header_id|>system<|end_header_id|>\n"
    "Cutting Knowledge Date: December 2023\n"
    "Today Date: 26 July 2024\n"
    "{system_prompt}<|eot_id|><|start_header_id|>user<|end_header_id|>\n"
    "{user_prompt}<|eot_id|><|start_header_id|>assistant<|end_header_id|>\n"
)

_GRANITE_TEMPLATE = (
    "<<|start_of_role|>system<|end_of_role|>{system_prompt}<|end_of_text|>\n"
    "<|start_of_role|>user<|end_of_role|>{user_prompt}<|end_of_text|>\n"
    "<|start_of_role|>assistant<|end_of_role|>"
)


def _default_model_dir() -> Path:
    return Path.home() / ".pyano" / "models"


def _text_config(
    *,
    name: str,
    kind: str,
    model_path: str,
    min_ram_gb: float,
    template: str,
    required_keys: list[str],
    max_tokens: int,
    port: int,
    ctx_size: int,
    batch_size: int,
) -> ModelConfig:
    return ModelConfig(
        name=name,
        model_path=Path(model_path),
        model_type=ModelType.TEXT,
        model_kind=kind,
        memory_config=ModelMemoryConfig(
            min_ram_gb=min_ram_gb,
            recommended_ram_gb=16.0,
            gpu_memory_gb=8.0,
        ),
        prompt_template=PromptTemplate(template=template, required_keys=list(required_keys)),
        defaults=ModelDefaults(
            temperature=0.7,
            top_p=0.9,
            top_k=40,
            max_tokens=max_tokens,
            repetition_penalty=1.1,
        ),
        server_config=ServerConfig(
            host="localhost",
            port=port,
            ctx_size=ctx_size,
            gpu_layers=-1,
            batch_size=batch_size,
            num_threads=8,
            use_mmap=True,
            use_gpu=True,
            extra_args={},
        ),
    )


class ModelRegistry:
    """Looks up model configurations by name.

    Model file locations can be overridden through environment variables.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        logger.info("Initializing ModelRegistry")
        env = os.environ if environ is None else environ
        self._configs = self._load_default_configs(env)

    @staticmethod
    def _load_default_configs(env: Mapping[str, str]) -> dict[str, ModelConfig]:
        models = _default_model_dir()

        def path_for(variable: str, file_name: str) -> str:
            return env.get(variable, str(models / file_name))

        configs = [
            _text_config(
                name="qwen-7b",
                kind="Qwen",
                model_path=path_for("QWEN_MODEL_PATH", "Qwen2.5-Coder-7B-Instruct-Q6_K_L.gguf"),
                min_ram_gb=1.0,
                template=_IM_TEMPLATE,
                required_keys=["system", "user"],
                max_tokens=2048,
                port=8000,
                ctx_size=4096,
                batch_size=512,
            ),
            _text_config(
                name="llama-7b",
                kind="LLaMa",
                model_path=path_for("LLAMA_MODEL_PATH", "Qwen2.5.1-Coder-7B-Instruct-Q4_0.gguf"),
                min_ram_gb=3.0,
                template=_IM_TEMPLATE,
                required_keys=["system", "user"],
                max_tokens=2048,
                port=9001,
                ctx_size=8096,
                batch_size=512,
            ),
            _text_config(
                name="smolTalk",
                kind="LLaMa",
                model_path=path_for(
                    "smolTalk_MODEL_PATH", "Llama-SmolTalk-3.2-1B-Instruct-Q8_0.gguf"
                ),
                min_ram_gb=2.0,
                template=_LLAMA3_TEMPLATE,
                required_keys=["system_prompt", "user_prompt"],
                max_tokens=4096,
                port=5007,
                ctx_size=16000,
                batch_size=1024,
            ),
            _text_config(
                name="granite",
                kind="LLaMa",
                model_path=path_for("Granite_MODEL_PATH", "granite-3.1-2b-instruct-Q6_K_L.gguf"),
                min_ram_gb=3.5,
                template=_GRANITE_TEMPLATE,
                required_keys=["system_prompt", "user_prompt"],
                max_tokens=2048,
                port=5008,
                ctx_size=8096,
                batch_size=512,
            ),
        ]
        logger.info("Loaded %d model configurations", len(configs))
        return {config.name: config for config in configs}

    def get_config(self, model_name: str) -> ModelConfig | None:
        """A copy of the named model's configuration, or None if it is unknown."""
        config = self._configs.get(model_name)
        if config is None:
            logger.info("Configuration not found for model: %s", model_name)
            return None
        return copy.deepcopy(config)

    def names(self) -> list[str]:
        """The names of all registered models."""
        return list(self._configs)