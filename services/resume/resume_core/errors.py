from __future__ import annotations


class GenerationError(Exception):
    code = "generation_failed"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class MissingInput(GenerationError):
    code = "missing_input"


class MalformedRefinementInput(GenerationError):
    code = "malformed_refinement_input"


class ProviderUnavailable(GenerationError):
    code = "provider_unavailable"


class GenerationTimeout(GenerationError):
    code = "generation_timeout"


class InvalidModelOutput(GenerationError):
    code = "invalid_model_output"

    def __init__(self, detail: str, raw_text: str = "") -> None:
        super().__init__(detail)
        self.raw_text = raw_text
