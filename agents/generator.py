"""Text generation backends for the classifier and digest agents.

Both agents need exactly one capability from a language model: send a
prompt, get free text back. TextGenerator captures that capability so the
agents can be driven by any backend, including deterministic stubs in tests.

Backends (selected by model string prefix):
    cloudflare:{model}            Cloudflare Workers AI REST API (aiohttp)
    openai:{model}@{base_url}     Local OpenAI-compatible server (openai SDK)
    anything else                 PydanticAI model string, e.g. 'google-gla:gemini-3-flash-preview'

Every backend raises GenerationError on transport failures, timeouts and
error responses. No backend retries; callers decide how to degrade.
"""

import asyncio
import logging
import ssl
from typing import Protocol

import aiohttp
import certifi
from openai import AsyncOpenAI, OpenAIError
from pydantic_ai import Agent

from config import Config

logger = logging.getLogger(__name__)

CLOUDFLARE_API_URL = "https://api.cloudflare.com/client/v4/accounts/{account_id}/ai/run/{model}"


class GenerationError(Exception):
    """Raised when a backend cannot produce text for a prompt."""


class TextGenerator(Protocol):
    """A single request/response call to a generative text model."""

    async def generate(self, prompt: str, max_tokens: int) -> str:
        """Return the model's free-text answer to prompt.

        Raises:
            GenerationError: If the call fails or times out
        """
        ...


def _parse_local_model(model_str: str) -> tuple[str, str] | None:
    """Parse local model string into (model_name, base_url) or None if not local."""
    if model_str.startswith("openai:") and "@" in model_str:
        rest = model_str[7:]  # Remove "openai:" prefix
        model_name, base_url = rest.split("@", 1)
        return model_name, base_url
    return None


def _parse_cloudflare_model(model_str: str) -> str | None:
    """Return the Workers AI model id for 'cloudflare:' strings, else None."""
    if model_str.startswith("cloudflare:"):
        return model_str[len("cloudflare:"):]
    return None


def create_ssl_context() -> ssl.SSLContext:
    """Create an SSL context that verifies against the certifi bundle."""
    return ssl.create_default_context(cafile=certifi.where())


class CloudflareGenerator:
    """Workers AI text generation over the Cloudflare REST API."""

    def __init__(self, model: str, account_id: str, api_token: str, timeout: float = 60.0):
        self.model = model
        self.account_id = account_id
        self.timeout = timeout
        self._api_token = api_token
        self._url = CLOUDFLARE_API_URL.format(account_id=account_id, model=model)

    async def generate(self, prompt: str, max_tokens: int) -> str:
        payload = {
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens,
        }
        headers = {"Authorization": f"Bearer {self._api_token}"}
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self._url,
                    json=payload,
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                    ssl=create_ssl_context(),
                ) as resp:
                    body = await resp.json(content_type=None)
                    status = resp.status
        except asyncio.TimeoutError as e:
            raise GenerationError(f"Workers AI request timed out after {self.timeout}s") from e
        except (aiohttp.ClientError, ValueError) as e:
            raise GenerationError(f"Workers AI request failed: {e}") from e

        if not isinstance(body, dict):
            raise GenerationError(f"Workers AI returned unexpected body (status={status})")
        if status >= 300 or body.get("success") is False:
            raise GenerationError(f"Workers AI error | status={status} errors={body.get('errors')}")

        result = body.get("result") or {}
        text = result.get("response") if isinstance(result, dict) else None
        logger.debug("Workers AI call complete | model=%s chars=%d", self.model, len(text or ""))
        return text if isinstance(text, str) else ""


class OpenAICompatibleGenerator:
    """Chat completions against a local OpenAI-compatible server.

    Local servers (MLX, llama.cpp, vLLM) need no authentication, so a
    placeholder key is sent. Only a single user message is used because
    some small local models reject system messages.
    """

    def __init__(self, model: str, base_url: str, timeout: float = 60.0):
        self.model = model
        self.base_url = base_url
        self._client = AsyncOpenAI(
            base_url=base_url,
            api_key="local-model",
            timeout=timeout,
            max_retries=0,
        )

    async def generate(self, prompt: str, max_tokens: int) -> str:
        try:
            resp = await self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=max_tokens,
                stream=False,
            )
        except OpenAIError as e:
            raise GenerationError(f"Local model request failed: {e}") from e

        if not resp.choices:
            return ""
        return resp.choices[0].message.content or ""


class PydanticAIGenerator:
    """Plain-text generation through a PydanticAI agent.

    Accepts any model string PydanticAI understands. Provider credentials
    are read from the environment by PydanticAI (e.g. GEMINI_API_KEY).
    """

    def __init__(self, model: str, timeout: float = 60.0):
        self.model = model
        self.timeout = timeout
        self._agent = Agent(model, output_type=str)

    async def generate(self, prompt: str, max_tokens: int) -> str:
        try:
            result = await asyncio.wait_for(
                self._agent.run(prompt, model_settings={"max_tokens": max_tokens}),
                timeout=self.timeout,
            )
            text = result.output
        except asyncio.TimeoutError as e:
            raise GenerationError(f"Model request timed out after {self.timeout}s") from e
        except Exception as e:
            raise GenerationError(f"Model request failed ({type(e).__name__}): {e}") from e

        logger.debug("PydanticAI call complete | model=%s chars=%d", self.model, len(text or ""))
        return text if isinstance(text, str) else ""


def create_generator(model: str, config: Config) -> TextGenerator:
    """Create the backend named by a model string.

    Args:
        model: Model string (see module docstring for formats)
        config: Application configuration with credentials and timeout

    Returns:
        A TextGenerator for the model
    """
    timeout = config.generation_timeout_seconds

    cf_model = _parse_cloudflare_model(model)
    if cf_model:
        logger.info("Using Workers AI model | model=%s", cf_model)
        return CloudflareGenerator(
            model=cf_model,
            account_id=config.cloudflare_account_id,
            api_token=config.cloudflare_api_token,
            timeout=timeout,
        )

    local = _parse_local_model(model)
    if local:
        model_name, base_url = local
        logger.info("Using local model | model=%s base_url=%s", model_name, base_url)
        return OpenAICompatibleGenerator(model=model_name, base_url=base_url, timeout=timeout)

    logger.info("Using PydanticAI model | model=%s", model)
    return PydanticAIGenerator(model=model, timeout=timeout)
