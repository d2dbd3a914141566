__all__ = [
    "models",
    "resume_schema",
    "prompts",
    "llm_provider",
    "logging",
    "document_store",
]
