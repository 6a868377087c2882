"""
Resilient Gemini API Client
Wrapper around Google's Generative AI API with retries and error classification
Uses the google-genai SDK async surface so a cancelled caller cancels the request
"""

import asyncio
import logging
from typing import Any, Optional

from google import genai
from google.genai import types

from shared.gemini.config import GeminiConfig, TaskType, get_gemini_config, get_task_config
from shared.gemini.exceptions import EmptyResponseError, GeminiAPICallError, MissingApiKeyError

logger = logging.getLogger(__name__)


class ResilientGeminiClient:
    """
    Resilient Gemini API client.

    Features:
    - Lazy SDK client construction (the service starts without a key and
      degrades to local fallbacks)
    - Configurable retry logic with exponential backoff
    - Quota error detection
    - Task-keyed model and generation parameters

    The client holds no per-request state and is shared across concurrent
    pipeline invocations.
    """

    def __init__(
        self,
        config: Optional[GeminiConfig] = None,
        max_retries: Optional[int] = None,
    ):
        """
        Initialize the resilient Gemini client.

        Args:
            config: Gemini configuration (defaults to the cached env config)
            max_retries: Override GEMINI_MAX_RETRIES
        """
        self._config = config or get_gemini_config()
        self.max_retries = max(1, max_retries if max_retries is not None else self._config.max_retries)
        self._client: Optional[genai.Client] = None

        logger.info(
            f"ResilientGeminiClient configured: "
            f"extraction_model={self._config.extraction_model}, "
            f"coaching_model={self._config.coaching_model}, "
            f"max_retries={self.max_retries}"
        )

    @property
    def raw_client(self) -> genai.Client:
        """
        Get the underlying genai.Client, creating it on first use.

        Raises:
            MissingApiKeyError: If no API key is configured
        """
        if self._client is None:
            if not self._config.api_key:
                raise MissingApiKeyError()
            self._client = genai.Client(api_key=self._config.api_key)
        return self._client

    @staticmethod
    def _is_quota_error(error: Exception) -> bool:
        """
        Detect if an error is related to quota exhaustion.

        Checks for common quota error patterns in exception messages.
        """
        error_str = str(error).lower()
        quota_indicators = [
            "quota",
            "rate_limit",
            "rate limit",
            "resource_exhausted",
            "429",
            "too many requests",
        ]
        return any(indicator in error_str for indicator in quota_indicators)

    async def generate_content(
        self,
        prompt: str,
        model: Optional[str] = None,
        system_instruction: Optional[str] = None,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
        json_output: bool = False,
        thinking_budget: Optional[int] = None,
        **kwargs: Any,
    ) -> str:
        """
        Generate content using Gemini API.

        Args:
            prompt: The prompt to send to Gemini
            model: Model name (defaults to the configured default model)
            system_instruction: Optional system instruction for the model
            temperature: Optional temperature for generation (0.0 to 2.0)
            max_output_tokens: Optional maximum tokens to generate
            json_output: Ask the model for an application/json response
            thinking_budget: Thinking token budget (0 disables thinking on 2.5 models)
            **kwargs: Additional GenerateContentConfig fields

        Returns:
            str: Generated text from Gemini

        Raises:
            MissingApiKeyError: If no API key is configured
            GeminiAPICallError: If the API call fails after retries
        """
        model = model or self._config.default_model
        client = self.raw_client
        last_error: Optional[Exception] = None

        config_kwargs: dict = dict(kwargs)
        if temperature is not None:
            config_kwargs["temperature"] = temperature
        if max_output_tokens is not None:
            config_kwargs["max_output_tokens"] = max_output_tokens
        if system_instruction:
            config_kwargs["system_instruction"] = system_instruction
        if json_output:
            config_kwargs["response_mime_type"] = "application/json"
        if thinking_budget is not None:
            config_kwargs["thinking_config"] = types.ThinkingConfig(thinking_budget=thinking_budget)

        config = types.GenerateContentConfig(**config_kwargs) if config_kwargs else None

        for attempt in range(self.max_retries):
            try:
                logger.debug(
                    f"Attempting Gemini API call (attempt {attempt + 1}/{self.max_retries}) "
                    f"with model={model}"
                )

                response = await client.aio.models.generate_content(
                    model=model,
                    contents=prompt,
                    config=config,
                )

                text = response.text
                if not text or not text.strip():
                    raise EmptyResponseError(model)

                logger.debug("Gemini API call successful")
                return text

            except EmptyResponseError:
                raise
            except Exception as error:
                last_error = error

                if self._is_quota_error(error):
                    logger.warning(f"Quota error from Gemini for model={model}: {error}")

                if attempt < self.max_retries - 1:
                    wait_time = 2**attempt
                    logger.warning(
                        f"Retrying after {wait_time}s due to error: {type(error).__name__}: {error}"
                    )
                    await asyncio.sleep(wait_time)
                    continue

        logger.error(f"Gemini API call failed after {self.max_retries} attempts. Last error: {last_error}")
        raise GeminiAPICallError(
            message=f"Failed to generate content after {self.max_retries} attempt(s): {last_error}",
            model=model,
            original_error=last_error,
            is_quota_error=self._is_quota_error(last_error) if last_error else False,
        )

    async def generate_for_task(
        self,
        task: TaskType,
        prompt: str,
        **kwargs: Any,
    ) -> str:
        """
        Generate content using task-specific configuration.

        Uses the centralized config to select the model and parameters for
        the given task type; kwargs override any task setting.

        Args:
            task: The type of task (from TaskType enum)
            prompt: The prompt to send
            **kwargs: Override any task-specific settings

        Returns:
            str: Generated text response
        """
        task_config = get_task_config(task, self._config)

        return await self.generate_content(
            prompt=prompt,
            model=kwargs.pop("model", task_config.model),
            temperature=kwargs.pop("temperature", task_config.temperature),
            max_output_tokens=kwargs.pop("max_output_tokens", task_config.max_output_tokens),
            system_instruction=kwargs.pop("system_instruction", task_config.system_instruction),
            json_output=kwargs.pop("json_output", task_config.json_output),
            thinking_budget=kwargs.pop("thinking_budget", task_config.thinking_budget),
            **kwargs,
        )

    def get_model_for_task(self, task: TaskType) -> str:
        """Get the configured model for a specific task type."""
        return self._config.get_model_for_task(task)
