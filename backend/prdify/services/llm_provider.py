import json
import time
from typing import Any, Dict, Optional

import openai
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from prdify.core.logging import llm_logger
from prdify.core.monitoring import record_llm_request


class LLMProviderError(Exception):
    """Base class for failures of the structured completion provider"""


class LLMNetworkError(LLMProviderError):
    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class LLMApiError(LLMProviderError):
    def __init__(self, message: str, status_code: int, error_type: Optional[str] = None,
                 error_code: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.error_type = error_type
        self.error_code = error_code


class LLMParsingError(LLMProviderError):
    pass


class LLMValidationError(LLMProviderError):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


_JSON_TYPES = {
    "string": str,
    "array": list,
    "object": dict,
    "boolean": bool,
    "integer": int,
    "number": (int, float),
}


def parse_structured_content(content: Any) -> Dict[str, Any]:
    """Decode the JSON object returned in a message body"""
    if not isinstance(content, str) or not content.strip():
        raise LLMParsingError("Invalid API response: no message content")
    try:
        result = json.loads(content)
    except json.JSONDecodeError as e:
        raise LLMParsingError(f"Failed to parse response JSON: {e}") from e
    if not isinstance(result, dict):
        raise LLMValidationError("Response is not an object")
    return result


def validate_structured_result(result: Dict[str, Any], json_schema: Dict[str, Any]) -> Dict[str, Any]:
    """Check required properties, declared types and additionalProperties"""
    schema = json_schema["schema"]
    properties = schema.get("properties", {})

    for name in schema.get("required", []):
        if name not in result:
            raise LLMValidationError(f"Missing required property: {name}", {"property": name})

    if schema.get("additionalProperties") is False:
        for name in result:
            if name not in properties:
                raise LLMValidationError(f"Unexpected property: {name}", {"property": name})

    for name, spec in properties.items():
        expected = _JSON_TYPES.get(spec.get("type"))
        if name in result and expected and not isinstance(result[name], expected):
            raise LLMValidationError(
                f"Property {name} must be of type {spec['type']}",
                {"property": name, "expected": spec["type"]},
            )
    return result


class StructuredCompletionProvider:
    """Chat completion client that returns JSON objects matching a strict schema.

    Instances are created by the application's composition root and passed
    to the services that need them.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gpt-4.1",
        base_url: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        timeout: int = 60,
        max_retries: int = 3,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.max_retries = max_retries

    @classmethod
    def from_settings(cls, settings) -> "StructuredCompletionProvider":
        return cls(**settings.get_openai_config())

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _build_model(self, params: Dict[str, Any]) -> ChatOpenAI:
        return ChatOpenAI(
            model=params.get("model", self.model),
            temperature=params.get("temperature", self.temperature),
            max_tokens=params.get("max_tokens", self.max_tokens),
            api_key=self.api_key,
            base_url=self.base_url,
            timeout=self.timeout,
            max_retries=self.max_retries,
        )

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        json_schema: Dict[str, Any],
        params: Optional[Dict[str, Any]] = None,
        operation: str = "completion",
    ) -> Dict[str, Any]:
        """Run one structured completion and return the validated object"""
        params = params or {}
        messages = [
            SystemMessage(content=system_prompt),
            HumanMessage(content=user_prompt),
        ]
        response_format = {"type": "json_schema", "json_schema": json_schema}

        start_time = time.time()
        try:
            model = self._build_model(params)
            response = await model.ainvoke(messages, response_format=response_format)
            result = validate_structured_result(parse_structured_content(response.content), json_schema)
        except openai.APIConnectionError as e:
            self._record_failure(operation, start_time, e)
            raise LLMNetworkError(f"Failed to reach completion API: {e}", e) from e
        except openai.APIStatusError as e:
            self._record_failure(operation, start_time, e)
            raise LLMApiError(
                e.message,
                e.status_code,
                error_type=getattr(e, "type", None),
                error_code=getattr(e, "code", None),
            ) from e
        except LLMProviderError as e:
            self._record_failure(operation, start_time, e)
            raise

        duration = time.time() - start_time
        record_llm_request(operation, duration, True)
        llm_logger.info("Structured completion succeeded", operation=operation, model=self.model, duration=duration)
        return result

    def _record_failure(self, operation: str, start_time: float, error: BaseException) -> None:
        record_llm_request(operation, time.time() - start_time, False)
        llm_logger.warning(
            "Structured completion failed",
            operation=operation,
            model=self.model,
            error=str(error),
            error_type=type(error).__name__,
        )
