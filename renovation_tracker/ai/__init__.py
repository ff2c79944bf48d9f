import json
import os
import urllib.request
import logging
from dataclasses import dataclass
from functools import partial
from typing import List, Protocol

import anyio
from huggingface_hub import InferenceClient
from abc import ABC, abstractmethod

from renovation_tracker.core.models import Transaction
from renovation_tracker.summary import aggregate_by_category, compute_stats
from renovation_tracker.utils import recent_transactions

# -----------------------------------------------------------------------------
# Configure basic debug logging (caller can override)
# -----------------------------------------------------------------------------
logging.basicConfig(level=os.getenv("LLM_DEBUG", "INFO").upper())
logger = logging.getLogger(__name__)

_GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
_OLLAMA_URL = "http://localhost:11434/api/chat"
_OPENAI_URL = "https://api.openai.com/v1/chat/completions"

DEFAULT_TIMEOUT = 30.0
ADVICE_FALLBACK = "Unable to generate advice at this time. Please check your API key."


class LLMProvider(Protocol):
    """A minimal protocol all concrete providers must implement."""

    def generate(self, messages: List[dict]) -> str:  # noqa: D401 – keep simple signature
        """Return the model reply given a list-of-dicts chat history."""


@dataclass
class LLMClient:
    """Simple client that delegates chat requests to an LLM provider."""
    provider: LLMProvider | None = None
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        if self.provider is None:
            self.provider = get_provider_from_env(timeout=self.timeout)

    def chat(self, messages: List[dict]) -> str:
        return self.provider.generate(messages)


def _post_json(url: str, payload: dict, headers: dict, timeout: float) -> dict:
    data = json.dumps(payload).encode()
    logger.debug("LLM ▶ POST %s", url)
    req = urllib.request.Request(url, data=data, method="POST")
    req.add_header("Content-Type", "application/json")
    for name, value in headers.items():
        req.add_header(name, value)
    with urllib.request.urlopen(req, timeout=timeout) as resp:
        raw = resp.read().decode()
    logger.debug("LLM ◀ %s", raw)
    return json.loads(raw)


# -----------------------------------------------------------------------------
# Google Gemini generateContent provider (REST)
# -----------------------------------------------------------------------------

@dataclass
class GeminiProvider:
    model: str
    api_key: str
    timeout: float = DEFAULT_TIMEOUT

    def generate(self, messages: List[dict]) -> str:
        system = [m["content"] for m in messages if m["role"] == "system"]
        contents = [
            {
                "role": "model" if m["role"] == "assistant" else "user",
                "parts": [{"text": m["content"]}],
            }
            for m in messages
            if m["role"] != "system"
        ]
        payload: dict = {"contents": contents}
        if system:
            payload["systemInstruction"] = {"parts": [{"text": "\n".join(system)}]}
        resp_data = _post_json(
            _GEMINI_URL.format(model=self.model),
            payload,
            {"x-goog-api-key": self.api_key},
            self.timeout,
        )
        try:
            parts = resp_data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError):
            raise RuntimeError(f"Unexpected Gemini response format: {resp_data}") from None
        return "".join(p.get("text", "") for p in parts).strip()


# -----------------------------------------------------------------------------
# Hugging Face Inference API provider
# -----------------------------------------------------------------------------

@dataclass
class HuggingFaceProvider:
    model: str
    token: str | None = None
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        self._client = InferenceClient(provider="cerebras", api_key=self.token, timeout=self.timeout)

    def generate(self, messages: List[dict]) -> str:
        out = self._client.chat_completion(messages=messages, model=self.model)
        return (out.choices[0].message.content or "").strip()


# -----------------------------------------------------------------------------
# OpenAI Chat Completions provider
# -----------------------------------------------------------------------------

@dataclass
class OpenAIProvider:
    model: str
    api_key: str
    timeout: float = DEFAULT_TIMEOUT

    def generate(self, messages: List[dict]) -> str:
        payload = {"model": self.model, "messages": messages}
        resp_data = _post_json(
            _OPENAI_URL,
            payload,
            {"Authorization": f"Bearer {self.api_key}"},
            self.timeout,
        )
        return (resp_data["choices"][0]["message"]["content"] or "").strip()


# -----------------------------------------------------------------------------
# Ollama provider with robust parsing
# -----------------------------------------------------------------------------

@dataclass
class OllamaProvider:
    model: str
    url: str = _OLLAMA_URL
    timeout: float = DEFAULT_TIMEOUT

    def generate(self, messages: List[dict]) -> str:
        payload = {"model": self.model, "messages": messages, "stream": False}
        resp_data = _post_json(self.url, payload, {}, self.timeout)

        # Ollama /api/chat returns either {'message': str, 'done': bool}
        # or {'message': {'role': 'assistant', 'content': str, ...}, 'done': bool}
        msg = resp_data.get("message", "")
        if isinstance(msg, dict):
            msg = msg.get("content", "")
        if not isinstance(msg, str):
            raise RuntimeError(f"Unexpected Ollama response format: {resp_data}")
        return msg.strip()


def get_provider_from_env(timeout: float = DEFAULT_TIMEOUT) -> LLMProvider:
    provider = os.environ.get("RENO_LLM_PROVIDER", "gemini").lower()

    if provider == "openai":
        api_key = os.environ.get("OPENAI_API_KEY")
        if not api_key:
            raise RuntimeError("OPENAI_API_KEY not set")
        model = os.environ.get("RENO_LLM_MODEL", "gpt-4o-mini")
        return OpenAIProvider(model=model, api_key=api_key, timeout=timeout)

    if provider == "ollama":
        model = os.environ.get("RENO_LLM_MODEL", "phi3:mini")
        url = os.environ.get("OLLAMA_URL", _OLLAMA_URL)
        return OllamaProvider(model=model, url=url, timeout=timeout)

    if provider == "huggingface":
        token = os.environ.get("HF_API_TOKEN")
        model = os.environ.get("RENO_LLM_MODEL", "Qwen/Qwen3-32B")
        return HuggingFaceProvider(model=model, token=token, timeout=timeout)

    if provider != "gemini":
        raise RuntimeError(f"Unknown LLM provider '{provider}'")

    api_key = os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY")
    if not api_key:
        raise RuntimeError("API key not found (set GEMINI_API_KEY or API_KEY)")
    model = os.environ.get("RENO_LLM_MODEL", "gemini-2.5-flash")
    return GeminiProvider(model=model, api_key=api_key, timeout=timeout)


class BaseAIOutput(ABC):
    """Composable layer for building prompts and parsing LLM responses.

    ``generate`` never raises: any failure, including an empty reply,
    is logged and turned into ``fallback``.
    """

    fallback = ADVICE_FALLBACK

    @abstractmethod
    def build_messages(self, transactions: List[Transaction]) -> List[dict]:
        """Return chat messages describing the task."""

    def post_process(self, response: str) -> str:
        return response

    def generate(
        self,
        transactions: List[Transaction],
        client: LLMClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> str:
        try:
            client = client or LLMClient(timeout=timeout)
            messages = self.build_messages(transactions)
            out = client.chat(messages)
            if not out or not out.strip():
                raise RuntimeError("Empty response from LLM")
        except Exception as e:
            logger.error("Error fetching budget advice: %s", e)
            return self.fallback
        return self.post_process(out)


def _num(value: float):
    return int(value) if float(value).is_integer() else round(value, 2)


@dataclass
class BudgetAdvice(BaseAIOutput):
    """Short assessment of the renovation budget: status, warnings, a tip."""

    total_budget: float
    project_name: str = "kitchen renovation"
    currency_symbol: str = "₹"

    def build_messages(self, transactions: List[Transaction]) -> List[dict]:
        stats = compute_stats(transactions, self.total_budget)
        breakdown = {
            cat.value: _num(total) for cat, total in aggregate_by_category(transactions).items()
        }
        recent = [
            f"{tx.date}: {tx.description} ({_num(tx.amount)})"
            for tx in recent_transactions(transactions, 5)
        ]
        sym = self.currency_symbol
        prompt = "\n".join(
            [
                f"I am managing a {self.project_name} project.",
                f"Total Budget: {sym}{_num(stats.total_budget)}",
                f"Total Spent: {sym}{_num(stats.total_spent)}",
                f"Remaining: {sym}{_num(stats.remaining)}",
                "",
                "Spending by Category:",
                json.dumps(breakdown, indent=2, ensure_ascii=False),
                "",
                "Recent Transactions (last 5):",
                json.dumps(recent, indent=2, ensure_ascii=False),
                "",
                "Please provide a brief, helpful financial assessment.",
                "1. Are we on track?",
                f"2. Any specific warnings based on typical {self.project_name} costs "
                "(e.g. if labor seems low compared to materials)?",
                "3. A quick tip for saving money.",
                "Keep it under 150 words. Format with bullet points.",
            ]
        )
        return [{"role": "user", "content": prompt}]


# -----------------------------------------------------------------------------
# Public helpers
# -----------------------------------------------------------------------------

def request_advice(
    transactions: List[Transaction],
    total_budget: float,
    *,
    project_name: str = "kitchen renovation",
    currency_symbol: str = "₹",
    client: LLMClient | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> str:
    """Return advice text from the LLM, or ``ADVICE_FALLBACK`` on any failure."""
    advice = BudgetAdvice(
        total_budget=total_budget,
        project_name=project_name,
        currency_symbol=currency_symbol,
    )
    return advice.generate(transactions, client, timeout)


async def request_advice_async(
    transactions: List[Transaction],
    total_budget: float,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    **kwargs,
) -> str:
    """Awaitable ``request_advice`` bounded by *timeout* seconds.

    A timeout yields the fallback text. Cancellation from the caller is
    propagated; the worker thread is abandoned rather than waited for.
    """
    call = partial(request_advice, list(transactions), total_budget, timeout=timeout, **kwargs)
    try:
        with anyio.fail_after(timeout):
            return await anyio.to_thread.run_sync(call, abandon_on_cancel=True)
    except TimeoutError:
        logger.error("Budget advice timed out after %ss", timeout)
        return ADVICE_FALLBACK
