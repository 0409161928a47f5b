# pyano

pyano is a toolkit for building small agent pipelines on top of a locally
running completion server in the llama.cpp style. It provides:

- an `LLM` client (`pyano.llm`) that fills in a prompt template, posts it to
  the server's `/completion` endpoint and returns the reply, whole or streamed;
- `Agent`s (`pyano.agent`) that pair a system prompt and a user prompt with an `LLM`;
- a sequential `Chain` (`pyano.chain`) that feeds each agent's output to the next agent;
- tools that agents can describe and call: web search (`DuckDuckGoSearchResults`),
  page scraping (`WebScrapper`) and shell commands (`CommandExecutor`);
- a `ModelManager` (`pyano.manager`) that starts and stops model server
  processes, tracks their status and frees memory by unloading the least
  recently used model;
- an HTTP front end for a manager (`ModelManagerServer`, `pyano.server`) and a
  `ModelManagerClient` (`pyano.client`);
- a `Document` type (`pyano.document`) holding text, metadata and a score.

## Installation

```
pip install pyano
```

The test suite needs the `test` extra:

```
pip install "pyano[test]"
```

## Talking to a completion server

```python
import asyncio

from pyano.agent import AgentBuilder
from pyano.llm import LLM
from pyano.llm_options import LLMHTTPCallOptions
from pyano.stream_processing import llamacpp_process_stream

PROMPT_TEMPLATE = (
    "<|start_header_id|>system<|end_header_id|>\n"
    "{system_prompt}<|eot_id|><|start_header_id|>user<|end_header_id|>\n"
    "{user_prompt}<|eot_id|><|start_header_id|>assistant<|end_header_id|>\n"
)

options = (
    LLMHTTPCallOptions()
    .with_server_url("http://localhost:52555")
    .with_prompt_template(PROMPT_TEMPLATE)
    .with_temperature(0.7)
    .build()
)

llm = (
    LLM.builder()
    .with_options(options)
    .with_process_response(llamacpp_process_stream)
    .build()
)

agent = (
    AgentBuilder()
    .with_name("Summarizer")
    .with_system_prompt("You are a great summarizer.")
    .with_user_prompt("Summarize the history of the printing press.")
    .with_stream(True)
    .with_llm(llm)
    .build()
)

print(asyncio.run(agent.invoke()))
```

`LLMHTTPCallOptions` is immutable: each `with_*` method returns a new
instance. `build()` raises `ValueError` unless both a server URL and a prompt
template were set, and resets every option not set through a `with_*` method
to its default (temperature 0.4, everything else unset). The template's
`{system_prompt}` and `{user_prompt}` placeholders are filled in for each
request; `LLM.build_payload` shows the JSON body that will be sent.

`LLM.response` returns the server's JSON answer; `LLM.response_stream` returns
an async iterator of byte chunks, passed through the stream processor if one
was given. `llamacpp_process_stream` (and `qwen_process_stream`, which is the
same) turns the server's `data: {...}` lines into the plain generated text.
HTTP failures raise `ServerUnavailableError` (5xx answers) or
`RequestFailedError` from `pyano.errors`.

`AgentBuilder.build()` raises `ValueError` unless an LLM, a system prompt and a
user prompt were given. `Agent.invoke()` prints the answer as it arrives and
returns it as a string.

## Chaining agents

```python
from pyano.chain import Chain

chain = Chain().add_agent(generator).add_agent(analyzer).add_agent(summarizer)
await chain.run()

for record in chain.memory_logs():
    print(record.agent_name, record.input, record.output, record.timestamp)
```

Each agent after the first receives the previous agent's output as its user
prompt. Every step is kept as an `ExecutionRecord`, and is also passed to an
`ExecutionRecorder` given through `Chain.with_recorder`.

## Tools

```python
from pyano.tools.duckduckgo import DuckDuckGoSearchResults
from pyano.tools.scraper import WebScrapper

search = DuckDuckGoSearchResults().with_max_results(3)
found = await search.json_call('{"query": "Give me some facts about Peru"}')
links = DuckDuckGoSearchResults.extract_links_from_results(found)

pages = await WebScrapper().json_call('{"urls": ["example.com"]}')
```

Every tool derives from `pyano.tools.base.Tool`: `call` returns the result as a
JSON string, `json_call` as a Python value. Input that is not JSON is wrapped as
`{"query": input}`. `WebScrapper` completes bare addresses with `fix_url` and
returns the body text of each page outside of scripts. `CommandExecutor`
takes `{"commands": [{"cmd": "ls", "args": []}]}` or a bare list of commands,
runs them in order and raises on the first one that fails.

`Agent.get_tools()` lists an agent's tools between `<tools>` and `</tools>`
tags, one JSON description per line, ready to be placed in a prompt.

## The model manager

`ModelManager` looks model configurations up in a `ModelRegistry`
(`qwen-7b`, `llama-7b`, `smolTalk` and `granite`), starts a model server
process for a model on demand and hands back an `LLM` pointed at it:

```python
from pyano.manager import ModelManager

manager = ModelManager()
llm = await manager.get_or_create_llm("smolTalk", None, True)
```

The model files are looked for under `~/.pyano/models` unless the environment
variables `QWEN_MODEL_PATH`, `LLAMA_MODEL_PATH`, `smolTalk_MODEL_PATH` or
`Granite_MODEL_PATH` say otherwise; the server program started is
`~/.pyano/build/bin/llama-server`. Before a model is started the manager checks
free memory through `SystemMemory` and, if there is not enough, stops loaded
models, oldest first, raising `ModelMemoryError` when that still is not enough.

To share one manager between several programs, run it as a service:

```
pyano-model-manager
```

It listens on `127.0.0.1:8090` (change it with `--addr`) and serves
`POST /models/load`, `POST /models/unload`, `GET /models/status/{name}` and
`GET /models/list`. Other programs reach it with
`ModelManagerClient("http://127.0.0.1:8090")`.

## What the package does not do

- It does not compute embeddings and has no vector store or similarity search:
  `Document` is only a container for text, metadata and a score.
- `ModelManagerClient.get_or_create_llm` asks the server for
  `/models/config/{name}` and `/models/server/{name}`, which
  `ModelManagerServer` does not serve; against that server, build the `LLM`
  yourself with `LLM.builder()`. `ModelManagerClient.load_model_by_name` does
  nothing.
- `SummarizerAgent` only greets and reports completion; it does not call a
  model. `SUMMARIZER_PROMPT` in `pyano.summarizer` can be used as a system
  prompt for an ordinary `Agent`.