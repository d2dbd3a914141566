from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from libs.core import llm_provider

_DEFAULT_GENERATION_TIMEOUT_S = 180.0
_DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
_DEFAULT_CORS_ORIGINS = ("http://localhost:5173",)


def _parse_optional_float(value: str | None) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _parse_optional_int(value: str | None) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_origins(value: str | None) -> Tuple[str, ...]:
    origins = tuple(item.strip() for item in (value or "").split(",") if item.strip())
    return origins or _DEFAULT_CORS_ORIGINS


def load_content_rules(path: str | None) -> Tuple[str, ...]:
    if not path:
        return ()
    lines = Path(path).read_text(encoding="utf-8").splitlines()
    return tuple(line.strip() for line in lines if line.strip() and not line.lstrip().startswith("#"))


@dataclass(frozen=True)
class Settings:
    provider_name: str = "mock"
    openai_api_key: str = ""
    openai_model: str = _DEFAULT_OPENAI_MODEL
    openai_base_url: str = "https://api.openai.com"
    call_style: llm_provider.CallStyle = llm_provider.CallStyle.responses
    temperature: Optional[float] = None
    max_output_tokens: Optional[int] = None
    generation_timeout_s: float = _DEFAULT_GENERATION_TIMEOUT_S
    content_rules: Tuple[str, ...] = ()
    data_dir: Path = field(default_factory=lambda: Path("./data").resolve())
    history_enabled: bool = True
    cors_origins: Tuple[str, ...] = _DEFAULT_CORS_ORIGINS


def load_settings() -> Settings:
    timeout_s = _parse_optional_float(os.getenv("RESUME_GENERATION_TIMEOUT_S"))
    if timeout_s is None or timeout_s <= 0:
        timeout_s = _DEFAULT_GENERATION_TIMEOUT_S
    return Settings(
        provider_name=os.getenv("LLM_PROVIDER", "mock").strip().lower() or "mock",
        openai_api_key=os.getenv("OPENAI_API_KEY", ""),
        openai_model=os.getenv("OPENAI_MODEL", "") or _DEFAULT_OPENAI_MODEL,
        openai_base_url=os.getenv("OPENAI_BASE_URL", "") or "https://api.openai.com",
        call_style=llm_provider.resolve_call_style(os.getenv("OPENAI_CALL_STYLE")),
        temperature=_parse_optional_float(os.getenv("OPENAI_TEMPERATURE")),
        max_output_tokens=_parse_optional_int(os.getenv("OPENAI_MAX_OUTPUT_TOKENS")),
        generation_timeout_s=timeout_s,
        content_rules=load_content_rules(os.getenv("RESUME_CONTENT_RULES_PATH")),
        data_dir=Path(os.getenv("RESUME_DATA_DIR", "./data")).resolve(),
        history_enabled=_parse_bool(os.getenv("RESUME_HISTORY_ENABLED"), True),
        cors_origins=_parse_origins(os.getenv("CORS_ORIGINS")),
    )


def create_provider(settings: Settings) -> llm_provider.LLMProvider:
    return llm_provider.resolve_provider(
        settings.provider_name,
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        base_url=settings.openai_base_url,
        call_style=settings.call_style,
        temperature=settings.temperature,
        max_output_tokens=settings.max_output_tokens,
        timeout_s=settings.generation_timeout_s,
    )
