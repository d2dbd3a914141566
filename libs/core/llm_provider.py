from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from http.client import HTTPException
from typing import Any, Dict, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen


@dataclass
class LLMResponse:
    content: str


class LLMProviderError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class LLMProviderTimeout(LLMProviderError):
    pass


class CallStyle(str, Enum):
    responses = "responses"
    chat_completions = "chat_completions"


def resolve_call_style(value: Optional[str]) -> CallStyle:
    normalized = (value or CallStyle.responses.value).strip().lower()
    try:
        return CallStyle(normalized)
    except ValueError as exc:
        allowed = ", ".join(style.value for style in CallStyle)
        raise ValueError(f"OPENAI_CALL_STYLE must be one of: {allowed}") from exc


class LLMProvider:
    model: str = ""

    def generate(
        self,
        system_text: str,
        user_text: str,
        *,
        json_schema: Optional[Dict[str, Any]] = None,
        timeout_s: Optional[float] = None,
    ) -> LLMResponse:  # pragma: no cover - interface
        raise NotImplementedError


_MOCK_RESUME = {
    "name": "Mock Candidate",
    "title": "Software Engineer",
    "contact": {"email": "candidate@example.com"},
    "summary": "Engineer generated by the mock provider.",
    "skills": {"core": ["Python"]},
    "experience": [
        {
            "company": "Example Corp",
            "role": "Software Engineer",
            "bullets": ["Shipped features used by thousands of customers."],
        }
    ],
}


class MockLLMProvider(LLMProvider):
    model = "mock"

    def generate(
        self,
        system_text: str,
        user_text: str,
        *,
        json_schema: Optional[Dict[str, Any]] = None,
        timeout_s: Optional[float] = None,
    ) -> LLMResponse:
        return LLMResponse(content=json.dumps(_MOCK_RESUME))


class OpenAIProvider(LLMProvider):
    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = "https://api.openai.com",
        call_style: CallStyle = CallStyle.responses,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
        timeout_s: float = 180.0,
        schema_name: str = "resume_document",
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.call_style = call_style
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.timeout_s = timeout_s
        self.schema_name = schema_name

    def generate(
        self,
        system_text: str,
        user_text: str,
        *,
        json_schema: Optional[Dict[str, Any]] = None,
        timeout_s: Optional[float] = None,
    ) -> LLMResponse:
        if self.call_style == CallStyle.chat_completions:
            path = "/v1/chat/completions"
            payload = self._chat_completions_payload(system_text, user_text, json_schema)
        else:
            path = "/v1/responses"
            payload = self._responses_payload(system_text, user_text, json_schema)
        data = self._post(path, payload, timeout_s if timeout_s is not None else self.timeout_s)
        if self.call_style == CallStyle.chat_completions:
            text = _extract_chat_text(data)
        else:
            text = _extract_output_text(data)
        if not text:
            raise LLMProviderError("OpenAI API returned empty output")
        return LLMResponse(content=text)

    def _responses_payload(
        self, system_text: str, user_text: str, json_schema: Optional[Dict[str, Any]]
    ) -> Dict[str, Any]:
        if json_schema is not None:
            text_format: Dict[str, Any] = {
                "type": "json_schema",
                "name": self.schema_name,
                "schema": json_schema,
                "strict": True,
            }
        else:
            text_format = {"type": "json_object"}
        payload: Dict[str, Any] = {
            "model": self.model,
            "input": [
                {"role": "system", "content": system_text},
                {"role": "user", "content": user_text},
            ],
            "text": {"format": text_format},
        }
        if self.temperature is not None:
            payload["temperature"] = self.temperature
        if self.max_output_tokens is not None:
            payload["max_output_tokens"] = self.max_output_tokens
        return payload

    def _chat_completions_payload(
        self, system_text: str, user_text: str, json_schema: Optional[Dict[str, Any]]
    ) -> Dict[str, Any]:
        if json_schema is not None:
            response_format: Dict[str, Any] = {
                "type": "json_schema",
                "json_schema": {"name": self.schema_name, "schema": json_schema, "strict": True},
            }
        else:
            response_format = {"type": "json_object"}
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_text},
                {"role": "user", "content": user_text},
            ],
            "response_format": response_format,
        }
        if self.temperature is not None:
            payload["temperature"] = self.temperature
        if self.max_output_tokens is not None:
            payload["max_completion_tokens"] = self.max_output_tokens
        return payload

    def _post(self, path: str, payload: Dict[str, Any], timeout_s: float) -> Dict[str, Any]:
        request = Request(
            f"{self.base_url}{path}",
            data=json.dumps(payload).encode("utf-8"),
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            method="POST",
        )
        try:
            with urlopen(request, timeout=timeout_s) as response:
                raw = response.read()
        except HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace") if exc.fp else str(exc)
            raise LLMProviderError(f"OpenAI API error: {detail}", status_code=exc.code) from exc
        except TimeoutError as exc:
            raise LLMProviderTimeout(f"OpenAI API timed out after {timeout_s:.1f}s") from exc
        except URLError as exc:
            if isinstance(exc.reason, TimeoutError):
                raise LLMProviderTimeout(f"OpenAI API timed out after {timeout_s:.1f}s") from exc
            raise LLMProviderError(f"OpenAI API connection error: {exc.reason}") from exc
        except (OSError, HTTPException) as exc:
            # Connection dropped while the body was being read.
            raise LLMProviderError(f"OpenAI API connection error: {exc!r}") from exc
        try:
            body = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise LLMProviderError("OpenAI API returned a non-UTF-8 body") from exc
        try:
            data = json.loads(body)
        except json.JSONDecodeError as exc:
            raise LLMProviderError("OpenAI API returned a non-JSON envelope") from exc
        if not isinstance(data, dict):
            raise LLMProviderError("OpenAI API returned a non-object envelope")
        return data


def resolve_provider(
    provider_name: str,
    *,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    base_url: Optional[str] = None,
    call_style: CallStyle = CallStyle.responses,
    temperature: Optional[float] = None,
    max_output_tokens: Optional[int] = None,
    timeout_s: Optional[float] = None,
) -> LLMProvider:
    name = (provider_name or "mock").strip().lower()
    if name == "openai":
        if not api_key:
            raise ValueError("OPENAI_API_KEY is required when LLM_PROVIDER=openai")
        if not model:
            raise ValueError("OPENAI_MODEL is required when LLM_PROVIDER=openai")
        return OpenAIProvider(
            api_key=api_key,
            model=model,
            base_url=base_url or "https://api.openai.com",
            call_style=call_style,
            temperature=temperature,
            max_output_tokens=max_output_tokens,
            timeout_s=timeout_s or 180.0,
        )
    if name == "mock":
        return MockLLMProvider()
    raise ValueError(f"Unsupported LLM_PROVIDER: {provider_name}")


def _extract_output_text(response: Dict[str, Any]) -> str:
    parts: list[str] = []
    for item in response.get("output", []):
        if item.get("type") != "message":
            continue
        for content in item.get("content", []):
            if content.get("type") == "output_text":
                parts.append(content.get("text", ""))
            elif content.get("type") == "refusal":
                raise LLMProviderError(f"OpenAI API refused: {content.get('refusal', '')}")
    return "".join(parts).strip()


def _extract_chat_text(response: Dict[str, Any]) -> str:
    choices = response.get("choices") or []
    if not choices:
        return ""
    message = choices[0].get("message") or {}
    refusal = message.get("refusal")
    if refusal:
        raise LLMProviderError(f"OpenAI API refused: {refusal}")
    content = message.get("content")
    return content.strip() if isinstance(content, str) else ""
