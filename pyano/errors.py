"""Exception hierarchy for language-model calls, model management and embeddings."""

from __future__ import annotations


class _DetailedError(Exception):
    """An error carrying a detail message that is shown after a fixed prefix."""

    prefix = ""

    def __init__(self, detail: object = "") -> None:
        super().__init__(detail)
        self.detail = detail

    def __str__(self) -> str:
        if self.prefix:
            return f"{self.prefix}: {self.detail}"
        return str(self.detail)


class LLMError(_DetailedError):
    """Base class for failures talking to a completion server."""


class ServerUnavailableError(LLMError):
    """The completion server answered with a server-side error."""

    prefix = "Server unavailable"


class RequestFailedError(LLMError):
    """The request could not be sent or was rejected."""

    prefix = "Request failed"


class UnexpectedLLMError(LLMError):
    """Any other failure during a completion call."""

    prefix = "Unexpected error"


class ModelError(_DetailedError):
    """Base class for model management failures."""


class ModelNotFoundError(ModelError):
    """No model, or no configuration, exists under the given name."""

    prefix = "Model not found"


class ModelAlreadyLoadedError(ModelError):
    """The model is already loaded."""

    prefix = "Model already loaded"


class ProcessError(ModelError):
    """A model server process could not be started, stopped or reached."""

    prefix = "Process error"


class ConfigError(ModelError):
    """A setting such as a listen address is invalid."""

    prefix = "Configuration error"


class ServerError(ModelError):
    """The model manager server reported a failure."""

    prefix = "Server error"


class InvalidConfigError(ModelError):
    """A model configuration is malformed."""

    prefix = "Invalid model configuration"


class ModelMemoryError(ModelError):
    """Not enough memory could be made available for a model."""

    prefix = "Memory error"


class EmbedderError(_DetailedError):
    """Base class for embedding failures."""


class InitializationFailedError(EmbedderError):
    """The embedding model could not be prepared."""

    prefix = "Initialization failed"


class EmbeddingGenerationFailedError(EmbedderError):
    """Embeddings could not be computed."""

    prefix = "Embedding generation failed"