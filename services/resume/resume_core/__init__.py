from .client import FallbackAttempt, GenerationClient, GenerationOutcome, StructuredAttempt
from .config import Settings, create_provider, load_content_rules, load_settings
from .errors import (
    GenerationError,
    GenerationTimeout,
    InvalidModelOutput,
    MalformedRefinementInput,
    MissingInput,
    ProviderUnavailable,
)
from .normalizer import normalize_resume
from .service import generate_resume, handle_request, refine_resume

__all__ = [
    "GenerationClient",
    "GenerationOutcome",
    "StructuredAttempt",
    "FallbackAttempt",
    "Settings",
    "load_settings",
    "load_content_rules",
    "create_provider",
    "GenerationError",
    "MissingInput",
    "MalformedRefinementInput",
    "ProviderUnavailable",
    "GenerationTimeout",
    "InvalidModelOutput",
    "normalize_resume",
    "generate_resume",
    "refine_resume",
    "handle_request",
]
