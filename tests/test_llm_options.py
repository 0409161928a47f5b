import pytest

from pyano.llm_options import LLMHTTPCallOptions, LLMServerOptions


def _base():
    return LLMHTTPCallOptions().with_server_url("http://localhost:52555").with_prompt_template(
        "{system_prompt}\n{user_prompt}"
    )


def test_default_temperature():
    assert LLMHTTPCallOptions().temperature == 0.4
    assert LLMHTTPCallOptions().server_url is None


def test_server_options_default_to_none():
    options = LLMServerOptions()
    assert options.temperature is None
    assert options.stop_words is None


def test_build_requires_server_url():
    with pytest.raises(ValueError, match="server_url"):
        LLMHTTPCallOptions().with_prompt_template("{user_prompt}").build()


def test_build_requires_prompt_template():
    with pytest.raises(ValueError, match="prompt_template"):
        LLMHTTPCallOptions().with_server_url("http://localhost:1").build()


def test_build_keeps_values_set_through_builder():
    built = _base().with_temperature(0.7).with_top_k(40).with_stop_words(["</s>"]).build()
    assert built.temperature == 0.7
    assert built.top_k == 40
    assert built.stop_words == ("</s>",)
    assert built.server_url == "http://localhost:52555"
    assert built.prompt_template == "{system_prompt}\n{user_prompt}"


def test_build_resets_values_not_set_through_builder():
    options = LLMHTTPCallOptions(top_k=5, temperature=0.9)
    built = options.with_server_url("http://h").with_prompt_template("t").build()
    assert built.top_k is None
    assert built.temperature == LLMHTTPCallOptions().temperature


def test_with_returns_new_instance():
    original = _base()
    changed = original.with_seed(11)
    assert original.seed is None
    assert changed.seed == 11
    assert "seed" in changed.initialized_fields
    assert "seed" not in original.initialized_fields


@pytest.mark.parametrize(
    ("method", "attr", "value"),
    [
        ("with_max_tokens", "max_tokens", 128),
        ("with_top_p", "top_p", 0.5),
        ("with_min_length", "min_length", 3),
        ("with_max_length", "max_length", 99),
        ("with_repetition_penalty", "repetition_penalty", 1.2),
    ],
)
def test_each_builder_survives_build(method, attr, value):
    built = getattr(_base(), method)(value).build()
    assert getattr(built, attr) == value