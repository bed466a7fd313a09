"""
Chat model access for content moderation.

DeepSeek and OpenAI-compatible endpoints need an API key (from the config or
the provider's usual environment variable); Ollama runs locally and needs none.
"""

import json
import logging
import os
import re
from typing import Optional

from langchain_core.messages import HumanMessage
from langchain_deepseek import ChatDeepSeek
from langchain_deepseek.chat_models import DEFAULT_API_BASE as DEEPSEEK_API_BASE
from langchain_ollama import OllamaLLM
from langchain_openai import ChatOpenAI

logger = logging.getLogger(__name__)

PROVIDER_DEFAULTS = {
    "deepseek": {"model": "deepseek-chat", "base_url": DEEPSEEK_API_BASE, "key_env": "DEEPSEEK_API_KEY"},
    "openai": {"model": "gpt-4o-mini", "base_url": "https://api.openai.com/v1", "key_env": "OPENAI_API_KEY"},
    "ollama": {"model": "qwen3:8b", "base_url": "http://localhost:11434", "key_env": None},
}

THINK_BLOCK = re.compile(r"<think>.*?</think>", re.DOTALL)


def strip_think_tags(text: str) -> str:
    """Drop the <think>...</think> preamble reasoning models emit."""
    return THINK_BLOCK.sub("", text)


class LLMProvider:
    """One configured chat model endpoint."""

    def __init__(
        self,
        provider: str = "deepseek",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: int = 30,
        max_retries: int = 1,
    ):
        self.provider = (provider or "deepseek").lower()
        if self.provider not in PROVIDER_DEFAULTS:
            logger.warning(f"Unknown LLM provider {provider!r}, using deepseek")
            self.provider = "deepseek"

        defaults = PROVIDER_DEFAULTS[self.provider]
        key_env = defaults["key_env"]
        self.api_key = api_key or (os.getenv(key_env) if key_env else None)
        self.base_url = base_url or defaults["base_url"]
        self.model = model or defaults["model"]
        self.timeout = timeout
        self.max_retries = max_retries

    @classmethod
    def from_config(cls, llm_config) -> "LLMProvider":
        return cls(
            provider=llm_config.provider,
            api_key=llm_config.api_key,
            base_url=llm_config.base_url,
            model=llm_config.model,
            timeout=llm_config.timeout,
        )

    @property
    def is_configured(self) -> bool:
        """Whether a call can be attempted at all."""
        return self.provider == "ollama" or bool(self.api_key)

    def _build_model(self):
        if self.provider == "ollama":
            return OllamaLLM(model=self.model, base_url=self.base_url, client_kwargs={"timeout": self.timeout})

        if not self.api_key:
            raise ValueError(f"No API key configured for the {self.provider} provider")

        if self.provider == "openai":
            return ChatOpenAI(
                model=self.model,
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=self.max_retries,
            )

        return ChatDeepSeek(
            model=self.model,
            api_key=self.api_key,
            api_base=self.base_url,
            timeout=self.timeout,
            max_retries=self.max_retries,
        )

    def complete(self, prompt: str) -> str:
        """Send a single user prompt and return the reply as text."""
        model = self._build_model()
        logger.debug(f"Calling {self.provider} model {self.model}")

        if self.provider == "ollama":
            return strip_think_tags(model.invoke(prompt))

        content = model.invoke([HumanMessage(content=prompt)]).content
        if not isinstance(content, str):
            content = json.dumps(content)
        return content
