from __future__ import annotations

import json
from typing import Any, Dict, NamedTuple, Sequence

from .resume_schema import render_schema_template


class PromptPair(NamedTuple):
    system_text: str
    user_text: str


_GENERATION_SYSTEM_LINES = (
    "You are an expert resume writer optimizing resumes for ATS systems.",
    "Write a concise, accomplishment-driven resume for the candidate, targeted at the role described.",
    "Return ONLY strict JSON matching the provided schema. No prose outside JSON.",
    "Guidelines:",
    "- The resume must fit on ONE printed page. Aim to fill 95-100% of that page, no more.",
    "- Use short, impact-focused bullet points that start with strong action verbs.",
    "- Quantify results wherever possible (%, $, time saved, scale).",
    "- Prioritize keywords relevant to the target job description.",
    "- Never invent facts beyond what the candidate provided in ABOUT_ME.",
    "- Include roughly 3-5 experience entries with 3-4 bullets each.",
    "- Keep the summary to 2-3 sentences.",
)

_REFINEMENT_SYSTEM_LINES = (
    "You are an expert resume editor revising an existing one-page resume.",
    "Apply the user's feedback to the resume and return the COMPLETE revised resume.",
    "Return ONLY strict JSON with exactly the same structure as the input resume. No prose outside JSON.",
    "Guidelines:",
    "- If asked to condense: shorten bullets, merge related bullets, and drop the lowest-impact items.",
    "- If asked to expand: add quantified detail drawn only from what the resume already states.",
    "- Preserve every section and field the input resume has, even those the feedback does not mention.",
    "- Preserve all quantifiable results (numbers, percentages, amounts).",
    "- Never invent employers, titles, dates, or achievements.",
)

_GENERATION_OUTPUT_RULES = (
    "Rules:",
    "- Return JSON only. No backticks. No commentary. No delimiters.",
    "- Keep bullet items crisp, 1 line each.",
    "- Omit optional fields you have no information for instead of using placeholders.",
    "- Align content with target role keywords.",
)


def _system_text(lines: Sequence[str], content_rules: Sequence[str]) -> str:
    rules = [rule.strip() for rule in content_rules if isinstance(rule, str) and rule.strip()]
    if not rules:
        return "\n".join(lines)
    extra = ["Additional content rules:", *(f"- {rule}" for rule in rules)]
    return "\n".join([*lines, *extra])


def resume_generation_prompt(
    about_me: str,
    target_text: str,
    content_rules: Sequence[str] = (),
) -> PromptPair:
    user_text = "\n".join(
        [
            "ABOUT_ME:",
            about_me,
            "",
            "TARGET_COMPANY_AND_JOB:",
            target_text,
            "",
            "Output strict JSON for this TypeScript-like schema (fields ending in ? are optional):",
            render_schema_template(),
            "",
            *_GENERATION_OUTPUT_RULES,
        ]
    )
    return PromptPair(_system_text(_GENERATION_SYSTEM_LINES, content_rules), user_text)


def resume_refinement_prompt(
    prior_resume: Dict[str, Any],
    feedback: str,
    content_rules: Sequence[str] = (),
) -> PromptPair:
    resume_json = json.dumps(prior_resume, ensure_ascii=False, indent=2)
    user_text = "\n".join(
        [
            "CURRENT_RESUME (JSON):",
            resume_json,
            "",
            "FEEDBACK:",
            feedback,
        ]
    )
    return PromptPair(_system_text(_REFINEMENT_SYSTEM_LINES, content_rules), user_text)
