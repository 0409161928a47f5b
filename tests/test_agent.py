import json

import httpx
import pytest

from pyano.agent import Agent, AgentBuilder
from pyano.llm import LLM
from pyano.llm_options import LLMHTTPCallOptions
from pyano.stream_processing import llamacpp_process_stream
from pyano.tools.base import Tool


def _llm(handler, process=None):
    options = (
        LLMHTTPCallOptions()
        .with_server_url("http://server.test")
        .with_prompt_template("{system_prompt}|{user_prompt}")
    )
    builder = LLM.builder().with_options(options).with_client(
        httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )
    if process is not None:
        builder = builder.with_process_response(process)
    return builder.build()


class EchoTool(Tool):
    def name(self):
        return "echo"

    def description(self):
        return "Echoes input"

    async def run(self, input):
        return input


def test_build_requires_llm():
    with pytest.raises(ValueError, match="LLM must be provided"):
        AgentBuilder().with_system_prompt("s").with_user_prompt("u").build()


def test_build_requires_user_prompt():
    llm = _llm(lambda r: httpx.Response(200, json={}))
    with pytest.raises(ValueError, match="User prompt must be provided"):
        AgentBuilder().with_llm(llm).with_system_prompt("s").build()


def test_build_requires_system_prompt():
    llm = _llm(lambda r: httpx.Response(200, json={}))
    with pytest.raises(ValueError, match="System prompt must be provided"):
        AgentBuilder().with_llm(llm).with_user_prompt("u").build()


def test_builder_keeps_settings():
    llm = _llm(lambda r: httpx.Response(200, json={}))
    agent = (
        AgentBuilder()
        .with_llm(llm)
        .with_system_prompt("sys")
        .with_user_prompt("usr")
        .with_name("A")
        .build()
    )
    assert (agent.system_prompt, agent.user_prompt, agent.name, agent.stream) == (
        "sys",
        "usr",
        "A",
        False,
    )


def test_get_tools_without_tools():
    assert Agent().get_tools() == "<tools>\n</tools>"


def test_get_tools_lists_each_tool():
    tool = EchoTool()
    text = Agent(tools=[tool, tool]).get_tools()
    lines = text.split("\n")
    assert lines[0] == "<tools>"
    assert lines[-1] == "</tools>"
    assert len(lines) == 4
    assert json.loads(lines[1]) == {
        "name": "echo",
        "description": "Echoes input",
        "parameters": tool.parameters(),
    }


@pytest.mark.asyncio
async def test_invoke_without_llm_fails():
    with pytest.raises(ValueError, match="LLM is required"):
        await Agent(system_prompt="s", user_prompt="u").invoke()


@pytest.mark.asyncio
async def test_invoke_returns_content(capsys):
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"content": "answer"})

    agent = AgentBuilder().with_llm(_llm(handler)).with_system_prompt("s").with_user_prompt("u").build()
    assert await agent.invoke() == "answer"
    assert "Response: answer" in capsys.readouterr().out
    assert seen[0]["prompt"] == "s|u"


@pytest.mark.asyncio
async def test_invoke_without_content_returns_empty(capsys):
    llm = _llm(lambda r: httpx.Response(200, json={"other": 1}))
    agent = Agent(system_prompt="s", user_prompt="u", llm=llm)
    assert await agent.invoke() == ""
    assert "`content` field is missing" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_invoke_streaming_collects_chunks(capsys):
    body = b'data: {"content":"Hel"}\n\ndata: {"content":"lo"}\n\n'
    llm = _llm(lambda r: httpx.Response(200, content=body), process=llamacpp_process_stream)
    agent = Agent(system_prompt="s", user_prompt="u", llm=llm, stream=True)
    result = await agent.invoke()
    assert result == "Hello"
    assert result in capsys.readouterr().out