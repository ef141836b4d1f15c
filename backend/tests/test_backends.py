import json
from types import SimpleNamespace

import httpx
import openai
import pytest

from vibecode.errors import GenerationBackendError
from vibecode.pipeline.backend import OllamaGenerationBackend, OpenAIGenerationBackend


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_client(completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


async def test_openai_backend_returns_content():
    completions = FakeCompletions(content="```js\nalert(1)\n```")
    backend = OpenAIGenerationBackend(fake_client(completions), model="gpt-4o-mini", max_tokens=256, timeout=5)

    text = await backend.generate("alert box")

    assert text == "```js\nalert(1)\n```"
    (call,) = completions.calls
    assert call["model"] == "gpt-4o-mini"
    assert call["messages"][-1] == {"role": "user", "content": "alert box"}
    assert call["max_tokens"] == 256


async def test_openai_backend_wraps_api_errors():
    error = openai.APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))
    backend = OpenAIGenerationBackend(fake_client(FakeCompletions(error=error)), model="gpt-4o-mini")

    with pytest.raises(GenerationBackendError):
        await backend.generate("anything")


async def test_ollama_backend_posts_prompt():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"model": "codellama", "response": "print(1)", "done": True})

    backend = OllamaGenerationBackend(
        base_url="http://ollama.test/", model="codellama", transport=httpx.MockTransport(handler)
    )

    assert await backend.generate("print one") == "print(1)"
    assert seen["url"] == "http://ollama.test/api/generate"
    assert seen["body"]["prompt"] == "print one"
    assert seen["body"]["stream"] is False


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="boom"),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"done": True}),
    ],
)
async def test_ollama_backend_failures(response):
    backend = OllamaGenerationBackend(
        base_url="http://ollama.test", model="codellama", transport=httpx.MockTransport(lambda request: response)
    )

    with pytest.raises(GenerationBackendError):
        await backend.generate("anything")
