"""LLM Gateway - Unified interface using LiteLLM.

The AI reviewer and the architecture reviewer talk to the language model
only through this gateway. LiteLLM gives one API over Groq, OpenAI,
Anthropic and Gemini, with provider fallbacks and cost tracking.

Note: LiteLLM is imported lazily so that importing codescope stays cheap and
fork-safe in worker processes.
"""

import logging
import os
from typing import Any

from codescope.core.config import settings

logger = logging.getLogger(__name__)

# Module-level flag to track if litellm is initialized
_litellm_initialized = False


def _ensure_litellm():
    """Lazy initialize LiteLLM on first use."""
    global _litellm_initialized
    if _litellm_initialized:
        return

    import litellm

    if settings.debug:
        os.environ["LITELLM_LOG"] = "DEBUG"

    litellm.drop_params = True  # Drop unsupported params instead of error

    # Disable LiteLLM's internal logging callbacks; their async workers can
    # time out and spam logs
    litellm.success_callback = []
    litellm.failure_callback = []
    litellm._async_success_callback = []
    litellm._async_failure_callback = []

    _litellm_initialized = True
    logger.debug("LiteLLM initialized")


class LLMError(Exception):
    """LLM Gateway error."""
    pass


class LLMTimeoutError(LLMError):
    """The provider did not answer in time."""
    pass


class LLMGateway:
    """
    Unified LLM Gateway using LiteLLM.

    Model naming convention (provider prefix required):
    - groq/llama-3.3-70b-versatile
    - openai/gpt-4o-mini
    - anthropic/claude-3-5-haiku-latest
    - gemini/gemini-2.0-flash
    """

    # Fallback chain for reliability
    FALLBACK_MODELS = [
        "groq/llama-3.3-70b-versatile",
        "openai/gpt-4o-mini",
        "anthropic/claude-3-5-haiku-latest",
        "gemini/gemini-2.0-flash",
    ]

    # Mapping of model prefixes to environment variable names
    _MODEL_KEY_MAPPING = {
        "groq/": "GROQ_API_KEY",
        "openai/": "OPENAI_API_KEY",
        "anthropic/": "ANTHROPIC_API_KEY",
        "gemini/": "GEMINI_API_KEY",
    }

    def __init__(self, default_model: str | None = None):
        """Initialize LLM Gateway with configured API keys."""
        self.default_model = default_model or settings.default_llm_model
        self._setup_api_keys()

    def _setup_api_keys(self):
        """Export API keys from settings for all supported providers."""
        if settings.groq_api_key:
            os.environ["GROQ_API_KEY"] = settings.groq_api_key

        if settings.openai_api_key:
            os.environ["OPENAI_API_KEY"] = settings.openai_api_key

        if settings.anthropic_api_key:
            os.environ["ANTHROPIC_API_KEY"] = settings.anthropic_api_key

        if settings.gemini_api_key:
            os.environ["GEMINI_API_KEY"] = settings.gemini_api_key

    def _get_available_fallbacks(self, exclude_model: str) -> list[str]:
        """Get fallback models that have API keys configured.

        Args:
            exclude_model: The primary model to exclude from fallbacks

        Returns:
            List of fallback model names with valid API keys
        """
        available = []
        for model in self.FALLBACK_MODELS:
            if model == exclude_model:
                continue
            for prefix, env_key in self._MODEL_KEY_MAPPING.items():
                if model.startswith(prefix):
                    if os.environ.get(env_key):
                        available.append(model)
                    break

        if not available:
            logger.debug(f"No fallback models available for {exclude_model}")

        return available

    async def complete(
        self,
        prompt: str,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        system_prompt: str | None = None,
        **kwargs,
    ) -> dict[str, Any]:
        """
        Generate a completion with automatic fallback.

        Args:
            prompt: User prompt
            model: Model name with provider prefix (e.g., "groq/llama-3.3-70b-versatile")
            temperature: Sampling temperature, defaults to settings.llm_temperature
            max_tokens: Maximum tokens in response, defaults to settings.llm_max_tokens
            system_prompt: Optional system prompt
            **kwargs: Additional parameters passed to LiteLLM

        Returns:
            dict with:
                - content: Response text
                - model: Model used
                - usage: Token usage stats
                - cost: Estimated cost in USD

        Raises:
            LLMTimeoutError: If the provider timed out
            LLMError: For any other provider failure
        """
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        return await self.chat(
            messages=messages,
            model=model,
            temperature=settings.llm_temperature if temperature is None else temperature,
            max_tokens=max_tokens or settings.llm_max_tokens,
            **kwargs,
        )

    async def chat(
        self,
        messages: list[dict],
        model: str | None = None,
        temperature: float = 0.3,
        max_tokens: int = 4096,
        fallback: bool = True,
        **kwargs,
    ) -> dict[str, Any]:
        """
        Send chat messages with automatic fallback.

        Args:
            messages: List of message dicts with role and content
            model: Model name with provider prefix
            temperature: Sampling temperature
            max_tokens: Maximum tokens in response
            fallback: Enable automatic fallback to other models
            **kwargs: Additional parameters passed to LiteLLM

        Returns:
            Dict with content, model, usage stats, and cost
        """
        _ensure_litellm()
        import litellm
        from litellm import acompletion, completion_cost

        model = model or self.default_model

        params = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            **kwargs,
        }

        if fallback:
            available_fallbacks = self._get_available_fallbacks(model)
            if available_fallbacks:
                params["fallbacks"] = available_fallbacks

        try:
            response = await acompletion(**params)
        except litellm.Timeout as e:
            logger.error(f"LLM completion timed out: {e}")
            raise LLMTimeoutError(f"Request timed out: {str(e)}")
        except Exception as e:
            logger.error(f"LLM completion failed: {e}")
            raise LLMError(f"All models failed: {str(e)}")

        try:
            cost = completion_cost(response)
        except Exception as e:
            logger.debug(f"Cost calculation unavailable for {model}: {e}")
            cost = None

        usage = getattr(response, "usage", None)
        return {
            "content": response.choices[0].message.content or "",
            "model": response.model,
            "usage": {
                "prompt_tokens": getattr(usage, "prompt_tokens", 0),
                "completion_tokens": getattr(usage, "completion_tokens", 0),
                "total_tokens": getattr(usage, "total_tokens", 0),
            },
            "cost": cost,
        }


# Singleton instance
_llm_gateway: LLMGateway | None = None


def get_llm_gateway() -> LLMGateway:
    """Get or create LLM Gateway singleton."""
    global _llm_gateway
    if _llm_gateway is None:
        _llm_gateway = LLMGateway()
    return _llm_gateway
