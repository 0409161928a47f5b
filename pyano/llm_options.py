"""Sampling and connection options for completion requests."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace

_RESETTABLE_FIELDS = (
    "max_tokens",
    "temperature",
    "stop_words",
    "top_k",
    "top_p",
    "seed",
    "min_length",
    "max_length",
    "repetition_penalty",
)


@dataclass
class LLMServerOptions:
    """Sampling options as understood by a completion server."""

    max_tokens: int | None = None
    temperature: float | None = None
    stop_words: list[str] | None = None
    top_k: int | None = None
    top_p: float | None = None
    seed: int | None = None
    min_length: int | None = None
    max_length: int | None = None
    repetition_penalty: float | None = None


@dataclass(frozen=True)
class LLMHTTPCallOptions:
    """Options for one completion endpoint; each ``with_*`` returns a new instance.

    Only values set through ``with_*`` survive :meth:`build`; every other
    option falls back to its default.
    """

    max_tokens: int | None = None
    temperature: float | None = 0.4
    stop_words: tuple[str, ...] | None = None
    top_k: int | None = None
    top_p: float | None = None
    seed: int | None = None
    min_length: int | None = None
    max_length: int | None = None
    repetition_penalty: float | None = None
    server_url: str | None = None
    prompt_template: str | None = None
    initialized_fields: tuple[str, ...] = field(default=(), repr=False)

    def _with(self, name: str, value: object) -> LLMHTTPCallOptions:
        return replace(
            self, **{name: value, "initialized_fields": self.initialized_fields + (name,)}
        )

    def with_max_tokens(self, max_tokens: int) -> LLMHTTPCallOptions:
        return self._with("max_tokens", max_tokens)

    def with_temperature(self, temperature: float) -> LLMHTTPCallOptions:
        return self._with("temperature", temperature)

    def with_stop_words(self, stop_words: Iterable[str]) -> LLMHTTPCallOptions:
        return self._with("stop_words", tuple(stop_words))

    def with_top_k(self, top_k: int) -> LLMHTTPCallOptions:
        return self._with("top_k", top_k)

    def with_top_p(self, top_p: float) -> LLMHTTPCallOptions:
        return self._with("top_p", top_p)

    def with_seed(self, seed: int) -> LLMHTTPCallOptions:
        return self._with("seed", seed)

    def with_min_length(self, min_length: int) -> LLMHTTPCallOptions:
        return self._with("min_length", min_length)

    def with_max_length(self, max_length: int) -> LLMHTTPCallOptions:
        return self._with("max_length", max_length)

    def with_repetition_penalty(self, repetition_penalty: float) -> LLMHTTPCallOptions:
        return self._with("repetition_penalty", repetition_penalty)

    def with_server_url(self, server_url: str) -> LLMHTTPCallOptions:
        return self._with("server_url", server_url)

    def with_prompt_template(self, prompt_template: str) -> LLMHTTPCallOptions:
        return self._with("prompt_template", prompt_template)

    def build(self) -> LLMHTTPCallOptions:
        """Return the finished options; server URL and prompt template are required."""
        defaults = LLMHTTPCallOptions()
        resets = {
            name: getattr(defaults, name)
            for name in _RESETTABLE_FIELDS
            if name not in self.initialized_fields
        }
        if "server_url" not in self.initialized_fields:
            raise ValueError("server_url must be provided before calling build()")
        if "prompt_template" not in self.initialized_fields:
            raise ValueError("prompt_template must be provided before calling build()")
        return replace(self, **resets)