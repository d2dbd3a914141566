from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class Contact(_Frozen):
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    linkedin: Optional[str] = None
    github: Optional[str] = None


class Skills(_Frozen):
    core: List[str]
    tools: Optional[List[str]] = None
    other: Optional[List[str]] = None


class ExperienceEntry(_Frozen):
    company: str
    role: str
    location: Optional[str] = None
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    bullets: List[str]


class ProjectEntry(_Frozen):
    name: str
    description: str
    bullets: Optional[List[str]] = None
    link: Optional[str] = None
    technologies: Optional[List[str]] = None


class EducationEntry(_Frozen):
    school: str
    degree: Optional[str] = None
    graduationDate: Optional[str] = None
    details: Optional[List[str]] = None


class ResumeDocument(_Frozen):
    """Structured one-page resume.

    This model is the single declaration of the resume shape. Prompt templates,
    the provider-side JSON Schema, refinement input checks and normalization are
    all derived from it in ``libs.core.resume_schema``.
    """

    name: str
    title: str
    contact: Contact
    summary: str
    skills: Skills
    experience: List[ExperienceEntry]
    projects: Optional[List[ProjectEntry]] = None
    education: Optional[List[EducationEntry]] = None
    certifications: Optional[List[str]] = None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class FreshRequest(_Frozen):
    about_me: str
    target_text: str


class RefineRequest(_Frozen):
    prior_resume: ResumeDocument
    feedback: str


GenerationRequest = Union[FreshRequest, RefineRequest]


class HistoryEntry(_Frozen):
    target_text: str
    result_html: str
    timestamp: datetime
