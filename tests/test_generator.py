import asyncio

import pytest
from aiohttp import test_utils, web

from agents.generator import (
    CloudflareGenerator,
    GenerationError,
    OpenAICompatibleGenerator,
    PydanticAIGenerator,
    create_generator,
)
from config import Config


def make_config(**fields) -> Config:
    return Config(cloudflare_account_id="acct", cloudflare_api_token="secret", generation_timeout_seconds=5, **fields)


class TestCreateGenerator:
    def test_cloudflare(self):
        generator = create_generator("cloudflare:@cf/meta/llama-3-8b-instruct", make_config())
        assert isinstance(generator, CloudflareGenerator)
        assert generator.model == "@cf/meta/llama-3-8b-instruct"
        assert generator.timeout == 5
        assert generator._url == (
            "https://api.cloudflare.com/client/v4/accounts/acct/ai/run/@cf/meta/llama-3-8b-instruct"
        )

    def test_local_openai(self):
        generator = create_generator("openai:qwen3-4b@http://127.0.0.1:8080/v1", make_config())
        assert isinstance(generator, OpenAICompatibleGenerator)
        assert generator.model == "qwen3-4b"
        assert generator.base_url == "http://127.0.0.1:8080/v1"

    def test_pydantic_ai(self):
        generator = create_generator("test", make_config())
        assert isinstance(generator, PydanticAIGenerator)
        assert generator.model == "test"


async def call_cloudflare(handler, prompt="Classify this", max_tokens=50) -> str:
    app = web.Application()
    app.router.add_post("/run", handler)
    async with test_utils.TestServer(app) as server:
        generator = CloudflareGenerator("@cf/model", "acct", "secret", timeout=5)
        generator._url = str(server.make_url("/run"))
        return await generator.generate(prompt, max_tokens)


def test_cloudflare_request_and_response():
    seen = {}

    async def handler(request: web.Request) -> web.Response:
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = await request.json()
        return web.json_response({"success": True, "result": {"response": '{"theme": "UI"}'}})

    text = asyncio.run(call_cloudflare(handler))

    assert text == '{"theme": "UI"}'
    assert seen["auth"] == "Bearer secret"
    assert seen["body"] == {"messages": [{"role": "user", "content": "Classify this"}], "max_tokens": 50}


def test_cloudflare_missing_response_is_empty():
    async def handler(request: web.Request) -> web.Response:
        return web.json_response({"success": True, "result": {}})

    assert asyncio.run(call_cloudflare(handler)) == ""


def test_cloudflare_error_status_raises():
    async def handler(request: web.Request) -> web.Response:
        return web.json_response({"success": False, "errors": [{"message": "quota"}]}, status=429)

    with pytest.raises(GenerationError, match="status=429"):
        asyncio.run(call_cloudflare(handler))


def test_cloudflare_non_json_raises():
    async def handler(request: web.Request) -> web.Response:
        return web.Response(text="<html>gateway</html>", status=502)

    with pytest.raises(GenerationError):
        asyncio.run(call_cloudflare(handler))


def test_local_server_unreachable_raises():
    generator = OpenAICompatibleGenerator("qwen", "http://127.0.0.1:9/v1", timeout=2)
    with pytest.raises(GenerationError):
        asyncio.run(generator.generate("hello", 10))


def test_pydantic_ai_test_model_returns_text():
    text = asyncio.run(PydanticAIGenerator("test").generate("hello", 10))
    assert isinstance(text, str)
    assert text


def test_pydantic_ai_timeout_raises():
    class SlowAgent:
        async def run(self, prompt, model_settings=None):
            await asyncio.sleep(1)

    generator = PydanticAIGenerator("test", timeout=0.01)
    generator._agent = SlowAgent()

    with pytest.raises(GenerationError, match="timed out"):
        asyncio.run(generator.generate("hello", 10))


def test_pydantic_ai_result_errors_become_generation_errors():
    class BrokenAgent:
        async def run(self, prompt, model_settings=None):
            return object()

    generator = PydanticAIGenerator("test")
    generator._agent = BrokenAgent()

    with pytest.raises(GenerationError, match="AttributeError"):
        asyncio.run(generator.generate("hello", 10))


def test_pydantic_ai_passes_token_cap():
    seen = {}

    class Result:
        output = '{"theme": "UI"}'

    class RecordingAgent:
        async def run(self, prompt, model_settings=None):
            seen["prompt"] = prompt
            seen["settings"] = model_settings
            return Result()

    generator = PydanticAIGenerator("test")
    generator._agent = RecordingAgent()

    assert asyncio.run(generator.generate("hello", 42)) == '{"theme": "UI"}'
    assert seen == {"prompt": "hello", "settings": {"max_tokens": 42}}
