import pytest

from pyano.model_interface import ModelManagerInterface


def test_interface_cannot_be_instantiated():
    with pytest.raises(TypeError):
        ModelManagerInterface()


@pytest.mark.parametrize(
    "operation",
    [
        "load_model",
        "unload_model",
        "get_model_status",
        "list_models",
        "get_or_create_llm",
        "load_model_by_name",
    ],
)
def test_every_operation_is_required(operation):
    with pytest.raises(TypeError) as info:
        ModelManagerInterface()
    assert operation in str(info.value)