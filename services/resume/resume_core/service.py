from __future__ import annotations

import time
from typing import Any, Mapping, Sequence

from libs.core import logging as core_logging, prompts
from libs.core.models import FreshRequest, GenerationRequest, RefineRequest, ResumeDocument
from libs.core.resume_schema import resume_shape_errors

from .client import GenerationClient
from .errors import InvalidModelOutput, MalformedRefinementInput, MissingInput
from .normalizer import normalize_resume

LOGGER = core_logging.get_logger("resume")


def generate_resume(
    about_me: str,
    target_text: str,
    client: GenerationClient,
    *,
    content_rules: Sequence[str] = (),
) -> ResumeDocument:
    about_me = about_me.strip() if isinstance(about_me, str) else ""
    target_text = target_text.strip() if isinstance(target_text, str) else ""
    if not about_me:
        raise MissingInput("About Me text is required")
    if not target_text:
        raise MissingInput("Target company and job description are required")
    prompt = prompts.resume_generation_prompt(about_me, target_text, content_rules)
    return _run(client, prompt, mode="generate")


def refine_resume(
    prior_resume: ResumeDocument | Mapping[str, Any],
    feedback: str,
    client: GenerationClient,
    *,
    content_rules: Sequence[str] = (),
) -> ResumeDocument:
    if not isinstance(prior_resume, ResumeDocument):
        if not isinstance(prior_resume, Mapping):
            raise MalformedRefinementInput("resume must be a JSON object")
        errors = resume_shape_errors(dict(prior_resume))
        if errors:
            raise MalformedRefinementInput("resume is malformed: " + "; ".join(errors))
    feedback = feedback.strip() if isinstance(feedback, str) else ""
    if not feedback:
        raise MissingInput("Feedback is required")
    prior = normalize_resume(prior_resume)
    prompt = prompts.resume_refinement_prompt(prior.to_payload(), feedback, content_rules)
    return _run(client, prompt, mode="refine")


def handle_request(
    request: GenerationRequest,
    client: GenerationClient,
    *,
    content_rules: Sequence[str] = (),
) -> ResumeDocument:
    if isinstance(request, FreshRequest):
        return generate_resume(
            request.about_me, request.target_text, client, content_rules=content_rules
        )
    if isinstance(request, RefineRequest):
        return refine_resume(
            request.prior_resume, request.feedback, client, content_rules=content_rules
        )
    raise TypeError(f"unsupported generation request: {type(request).__name__}")


def _run(client: GenerationClient, prompt: prompts.PromptPair, *, mode: str) -> ResumeDocument:
    started = time.monotonic()
    outcome = client.generate(prompt)
    resume = normalize_resume(outcome.payload)
    if not resume.name.strip() or not resume.title.strip():
        raise InvalidModelOutput("model output is missing name or title", raw_text=outcome.raw_text)
    LOGGER.info(
        f"{mode}_resume_finished",
        tier=outcome.tier,
        prompt_chars=len(prompt.system_text) + len(prompt.user_text),
        experience_entries=len(resume.experience),
        duration_ms=int((time.monotonic() - started) * 1000),
    )
    return resume
