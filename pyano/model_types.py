"""Data types describing model configurations, statuses and listings."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import MISSING, asdict, dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar

_BUILTIN_MODEL_TYPES = ("Text", "Voice", "Vision")


@dataclass(frozen=True)
class ModelType:
    """The modality of a model; names other than the built-in ones are custom."""

    name: str

    TEXT: ClassVar[ModelType]
    VOICE: ClassVar[ModelType]
    VISION: ClassVar[ModelType]

    @property
    def is_custom(self) -> bool:
        return self.name not in _BUILTIN_MODEL_TYPES

    def to_json(self) -> str:
        return self.name

    @classmethod
    def from_json(cls, value: Any) -> ModelType:
        if not isinstance(value, str):
            raise ValueError(f"model type must be a string, got {value!r}")
        return cls(value)


ModelType.TEXT = ModelType("Text")
ModelType.VOICE = ModelType("Voice")
ModelType.VISION = ModelType("Vision")


class TextModelKind(Enum):
    QWEN = "Qwen"
    LLAMA = "LLaMA"
    MISTRAL = "Mistral"


class AudioModelKind(Enum):
    WHISPER = "Whisper"
    QWEN2_AUDIO = "Qwen2Audio"


class ModelState(Enum):
    LOADING = "Loading"
    RUNNING = "Running"
    STOPPED = "Stopped"
    ERROR = "Error"


@dataclass(frozen=True)
class ModelStatus:
    """The state of a model process; an error state carries a message."""

    state: ModelState
    message: str | None = None

    def __post_init__(self) -> None:
        if self.state is ModelState.ERROR:
            if self.message is None:
                object.__setattr__(self, "message", "")
        elif self.message is not None:
            raise ValueError(f"status {self.state.value} carries no message")

    @classmethod
    def loading(cls) -> ModelStatus:
        return cls(ModelState.LOADING)

    @classmethod
    def running(cls) -> ModelStatus:
        return cls(ModelState.RUNNING)

    @classmethod
    def stopped(cls) -> ModelStatus:
        return cls(ModelState.STOPPED)

    @classmethod
    def error(cls, message: str) -> ModelStatus:
        return cls(ModelState.ERROR, message)

    @property
    def is_running(self) -> bool:
        return self.state is ModelState.RUNNING

    def to_json(self) -> str | dict[str, str]:
        if self.state is ModelState.ERROR:
            return {ModelState.ERROR.value: self.message or ""}
        return self.state.value

    @classmethod
    def from_json(cls, value: Any) -> ModelStatus:
        if isinstance(value, str):
            if value == ModelState.ERROR.value:
                raise ValueError("the Error status needs a message")
            try:
                return cls(ModelState(value))
            except ValueError:
                raise ValueError(f"unknown model status: {value!r}") from None
        if isinstance(value, Mapping) and len(value) == 1:
            message = value.get(ModelState.ERROR.value)
            if isinstance(message, str):
                return cls.error(message)
        raise ValueError(f"invalid model status: {value!r}")

    def __str__(self) -> str:
        if self.state is ModelState.ERROR:
            return f'Error("{self.message}")'
        return self.state.value


def _build(cls: type, data: Any, optional: tuple[str, ...] = ()) -> Any:
    if not isinstance(data, Mapping):
        raise ValueError(f"expected an object for {cls.__name__}, got {data!r}")
    kwargs: dict[str, Any] = {}
    for item in fields(cls):
        if not item.init:
            continue
        if item.name in data:
            kwargs[item.name] = data[item.name]
        elif item.name in optional:
            kwargs[item.name] = None
        else:
            raise ValueError(f"missing field `{item.name}` in {cls.__name__}")
    return cls(**kwargs)


def _require(data: Any, key: str, owner: str) -> Any:
    if not isinstance(data, Mapping):
        raise ValueError(f"expected an object for {owner}, got {data!r}")
    if key not in data:
        raise ValueError(f"missing field `{key}` in {owner}")
    return data[key]


def _format_timestamp(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


_FRACTION = re.compile(r"\.(\d+)")


def _parse_timestamp(value: Any) -> datetime:
    if not isinstance(value, str):
        raise ValueError(f"timestamp must be a string, got {value!r}")
    text = value.strip()
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(lambda m: "." + (m.group(1) + "000000")[:6], text, count=1)
    try:
        moment = datetime.fromisoformat(text)
    except ValueError as exc:
        raise ValueError(f"invalid timestamp: {value!r}") from exc
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


@dataclass
class ServerConfig:
    """Settings passed to the model server process."""

    host: str = "localhost"
    port: int | None = None
    ctx_size: int = 2048
    gpu_layers: int = 0
    batch_size: int = 512
    num_threads: int | None = None
    use_mmap: bool = True
    use_gpu: bool = False
    extra_args: dict[str, str] = field(default_factory=dict)


@dataclass
class ModelMemoryConfig:
    min_ram_gb: float
    recommended_ram_gb: float
    gpu_memory_gb: float | None = None


@dataclass
class PromptTemplate:
    template: str
    required_keys: list[str] = field(default_factory=list)


@dataclass
class ModelDefaults:
    temperature: float
    top_p: float
    top_k: int
    max_tokens: int
    repetition_penalty: float


@dataclass
class AdapterConfig:
    server_port: int | None
    ctx_size: int
    gpu_layers: int
    batch_size: int
    extra_args: dict[str, str] = field(default_factory=dict)


@dataclass
class ModelConfig:
    """Everything needed to start and talk to one model."""

    name: str
    model_path: Path
    model_type: ModelType
    model_kind: str
    memory_config: ModelMemoryConfig
    prompt_template: PromptTemplate
    defaults: ModelDefaults
    server_config: ServerConfig

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "model_path": str(self.model_path),
            "model_type": self.model_type.to_json(),
            "model_kind": self.model_kind,
            "memory_config": asdict(self.memory_config),
            "prompt_template": asdict(self.prompt_template),
            "defaults": asdict(self.defaults),
            "server_config": asdict(self.server_config),
        }

    @classmethod
    def from_dict(cls, data: Any) -> ModelConfig:
        owner = cls.__name__
        server = _build(ServerConfig, _require(data, "server_config", owner), ("port", "num_threads"))
        server.extra_args = dict(server.extra_args)
        template = _build(PromptTemplate, _require(data, "prompt_template", owner))
        template.required_keys = list(template.required_keys)
        return cls(
            name=_require(data, "name", owner),
            model_path=Path(_require(data, "model_path", owner)),
            model_type=ModelType.from_json(_require(data, "model_type", owner)),
            model_kind=_require(data, "model_kind", owner),
            memory_config=_build(
                ModelMemoryConfig, _require(data, "memory_config", owner), ("gpu_memory_gb",)
            ),
            prompt_template=template,
            defaults=_build(ModelDefaults, _require(data, "defaults", owner)),
            server_config=server,
        )


@dataclass
class ModelInfo:
    """A summary of one loaded model."""

    name: str
    model_type: ModelType
    status: ModelStatus
    last_used: datetime
    server_port: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "model_type": self.model_type.to_json(),
            "status": self.status.to_json(),
            "last_used": _format_timestamp(self.last_used),
            "server_port": self.server_port,
        }

    @classmethod
    def from_dict(cls, data: Any) -> ModelInfo:
        owner = cls.__name__
        port = data.get("server_port") if isinstance(data, Mapping) else None
        return cls(
            name=_require(data, "name", owner),
            model_type=ModelType.from_json(_require(data, "model_type", owner)),
            status=ModelStatus.from_json(_require(data, "status", owner)),
            last_used=_parse_timestamp(_require(data, "last_used", owner)),
            server_port=port,
        )


_ = MISSING