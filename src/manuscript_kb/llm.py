"""LLM client abstraction.

Supports multiple backends:
- Ollama (local)
- Hugging Face Inference API (cloud)

Every transport failure is logged and turned into an empty response, so
callers can always fall back to their deterministic result.
"""

import json
import logging
import re
from typing import Optional

import httpx

from .config import get_settings

logger = logging.getLogger(__name__)

HF_CHAT_URL = "https://router.huggingface.co/v1/chat/completions"


def _text(value: object) -> str:
    """Return generated text, or an empty string for anything that isn't text."""
    return value.strip() if isinstance(value, str) else ""


class LLMClient:
    """Unified LLM client supporting multiple providers.

    Usage:
        client = LLMClient()  # Uses config defaults
        response = client.generate("Classify these names...")

        # Or specify provider
        client = LLMClient(provider="huggingface")
    """

    def __init__(
        self,
        provider: Optional[str] = None,
        model: Optional[str] = None,
    ):
        """Initialize LLM client.

        Args:
            provider: "ollama" or "huggingface" (default from config)
            model: Model name (default from config)
        """
        self.settings = get_settings()
        self.provider = provider or self.settings.llm_provider

        if model:
            self.model = model
        elif self.provider == "huggingface":
            self.model = self.settings.hf_model
        else:
            self.model = self.settings.ollama_model

    def generate(
        self,
        prompt: str,
        system: Optional[str] = None,
        temperature: float = 0.2,
        max_tokens: int = 4096,
        timeout: Optional[float] = None,
    ) -> str:
        """Generate text from prompt.

        Args:
            prompt: The user prompt
            system: Optional system message
            temperature: Sampling temperature (0-1)
            max_tokens: Maximum tokens to generate
            timeout: Request timeout in seconds (default from config)

        Returns:
            Generated text, or empty string on error
        """
        timeout = timeout or self.settings.llm_timeout
        if self.provider == "huggingface":
            return self._generate_hf(prompt, system, temperature, max_tokens, timeout)
        return self._generate_ollama(prompt, system, temperature, max_tokens, timeout)

    def _generate_ollama(
        self,
        prompt: str,
        system: Optional[str],
        temperature: float,
        max_tokens: int,
        timeout: float,
    ) -> str:
        """Generate using Ollama."""
        payload = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": temperature,
                "num_predict": max_tokens,
            },
        }
        if system:
            payload["system"] = system

        try:
            response = httpx.post(
                f"{self.settings.ollama_base_url}/api/generate",
                json=payload,
                timeout=timeout,
            )
            if response.status_code == 200:
                result = response.json()
                if isinstance(result, dict):
                    return _text(result.get("response"))
                logger.warning("Unexpected Ollama response: %s", response.text[:200])
                return ""
            logger.warning("Ollama error %d: %s", response.status_code, response.text[:200])
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Ollama error: %s", e)

        return ""

    def _generate_hf(
        self,
        prompt: str,
        system: Optional[str],
        temperature: float,
        max_tokens: int,
        timeout: float,
    ) -> str:
        """Generate using Hugging Face Inference API (OpenAI-compatible)."""
        if not self.settings.hf_api_key:
            logger.warning("HF API key not set - falling back to Ollama")
            return self._generate_ollama(prompt, system, temperature, max_tokens, timeout)

        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        try:
            response = httpx.post(
                HF_CHAT_URL,
                headers={
                    "Authorization": f"Bearer {self.settings.hf_api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "model": self.model,
                    "messages": messages,
                    "temperature": temperature,
                    "max_tokens": max_tokens,
                },
                timeout=timeout,
            )

            if response.status_code == 200:
                result = response.json()
                # OpenAI-compatible response format
                if isinstance(result, dict) and isinstance(result.get("choices"), list) and result["choices"]:
                    choice = result["choices"][0]
                    message = choice.get("message") if isinstance(choice, dict) else None
                    return _text(message.get("content") if isinstance(message, dict) else None)
                # Legacy format fallback
                if isinstance(result, list) and result and isinstance(result[0], dict):
                    return _text(result[0].get("generated_text"))
                if isinstance(result, dict) and "generated_text" in result:
                    return _text(result.get("generated_text"))
                logger.warning("Unexpected HF API response: %s", response.text[:200])
            else:
                logger.warning("HF API error %d: %s", response.status_code, response.text[:200])

        except (httpx.HTTPError, ValueError) as e:
            logger.warning("HF API error: %s", e)

        return ""

    def extract_json(self, response: str) -> list | dict | None:
        """Extract JSON from LLM response.

        Handles markdown code blocks and stray text.

        Args:
            response: Raw LLM response

        Returns:
            Parsed JSON or None
        """
        if not response:
            return None

        # Try to extract from code block
        if "```" in response:
            match = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", response)
            if match:
                response = match.group(1)

        try:
            return json.loads(response)
        except json.JSONDecodeError:
            pass

        # Try to find array or object
        for pattern in (r"\[[\s\S]*\]", r"\{[\s\S]*\}"):
            match = re.search(pattern, response)
            if match:
                try:
                    return json.loads(match.group(0))
                except json.JSONDecodeError:
                    pass

        return None

    @property
    def is_available(self) -> bool:
        """Check if the LLM backend is available."""
        if self.provider == "huggingface":
            return bool(self.settings.hf_api_key)
        try:
            response = httpx.get(
                f"{self.settings.ollama_base_url}/api/tags",
                timeout=5.0,
            )
            return response.status_code == 200
        except httpx.HTTPError:
            return False
