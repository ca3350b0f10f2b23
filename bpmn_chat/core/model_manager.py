import threading

from typing import Optional, Dict, Any
from langchain_openai import ChatOpenAI

from bpmn_chat.core.logger import Logger


class ModelSpec:
    """Specification of the chat model behind the completion gateway."""

    def __init__(
        self,
        name: str,
        api_key: str,
        base_url: str,
        temperature: float,
        timeout: float,
        max_tokens: Optional[int] = None
    ):
        """
        Initialize model specification.

        Args:
            name: Model name/identifier
            api_key: API key for the OpenAI-compatible endpoint
            base_url: Base URL for the API (default: OpenRouter)
            temperature: Sampling temperature
            timeout: Request timeout in seconds
            max_tokens: Maximum tokens to generate (None = model default)
        """
        self.name = name
        self.api_key = api_key
        self.base_url = base_url
        self.temperature = temperature
        self.timeout = timeout
        self.max_tokens = max_tokens

    def __repr__(self) -> str:
        return f"ModelSpec({self.name}) with temp={self.temperature}"


class ModelManager:
    """
    Builds and caches ChatOpenAI instances for a model spec.

    Instances are keyed by their effective call parameters so that turns
    with identical options reuse one client. Client-side retries are
    always disabled: a failed call surfaces immediately.
    """

    def __init__(self, model_spec: ModelSpec, cache_models: bool = True):
        """
        Initialize the model manager.

        Args:
            model_spec: Specification of the model to load
            cache_models: Whether to cache loaded models for reuse
        """
        self.model_spec = model_spec
        self.cache_models = cache_models
        self._model_cache: Dict[str, ChatOpenAI] = {}
        self._cache_lock = threading.Lock()

        Logger.log_info("ModelManager initialized")
        Logger.log_models(model_spec.name, model_spec.base_url)

    def get_model(self, **override_kwargs: Any) -> ChatOpenAI:
        """
        Get an LLM instance, applying per-call overrides.

        Args:
            **override_kwargs: Optional overrides (max_tokens, temperature, timeout)

        Returns:
            Configured ChatOpenAI instance
        """
        model_kwargs = {
            "model": self.model_spec.name,
            "api_key": self.model_spec.api_key,
            "base_url": self.model_spec.base_url,
            "temperature": self.model_spec.temperature,
            "timeout": self.model_spec.timeout,
            "max_tokens": self.model_spec.max_tokens,
        }
        model_kwargs.update(override_kwargs)
        model_kwargs["max_retries"] = 0

        cache_key = (
            f"{model_kwargs['model']}:{model_kwargs['max_tokens']}:"
            f"{model_kwargs['temperature']}:{model_kwargs['timeout']}"
        )
        if not self.cache_models:
            Logger.log_info(f"Loading model: {self.model_spec.name}")
            return ChatOpenAI(**model_kwargs)

        with self._cache_lock:
            if cache_key in self._model_cache:
                Logger.log_debug(f"Using cached model: {cache_key}")
                return self._model_cache[cache_key]

            Logger.log_info(f"Loading model: {self.model_spec.name}")
            llm = ChatOpenAI(**model_kwargs)
            self._model_cache[cache_key] = llm
            Logger.log_debug(f"Cached model: {cache_key}")

        return llm

