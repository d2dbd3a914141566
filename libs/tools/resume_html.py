from __future__ import annotations

from pathlib import Path
from typing import Any, List, Mapping, Tuple

from jinja2 import Environment, FileSystemLoader, select_autoescape

from libs.core.models import ResumeDocument

_TEMPLATES_DIR = Path(__file__).parent / "templates"
_CSS_PATH = _TEMPLATES_DIR / "resume.css"
_CONTACT_FIELDS = ("email", "phone", "location", "website", "linkedin", "github")
_SKILL_GROUPS = (("core", "Core"), ("tools", "Tools"), ("other", "Other"))


def _role_meta(role: Mapping[str, Any]) -> str:
    dates = " – ".join(part for part in (role.get("startDate"), role.get("endDate")) if part)
    return " • ".join(part for part in (dates, role.get("location")) if part)


def _contact_parts(contact: Mapping[str, Any]) -> List[str]:
    return [contact[key] for key in _CONTACT_FIELDS if contact.get(key)]


def _skill_groups(skills: Mapping[str, Any]) -> List[Tuple[str, List[str]]]:
    return [(label, skills[key]) for key, label in _SKILL_GROUPS if skills.get(key)]


_ENV = Environment(
    loader=FileSystemLoader(str(_TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)
_ENV.filters["role_meta"] = _role_meta


def render_resume_html(resume: ResumeDocument, inline_css: bool = False) -> str:
    """Render a resume to an HTML fragment rooted at ``<article class="resume">``.

    Absent optional fields are left out of the markup entirely. With
    ``inline_css`` the stylesheet is embedded so the fragment stands alone,
    which the PDF exporter relies on.
    """
    data = resume.to_payload()
    return _ENV.get_template("resume.html").render(
        r=data,
        contact_parts=_contact_parts(data.get("contact", {})),
        skill_groups=_skill_groups(data.get("skills", {})),
        inline_css=_CSS_PATH.read_text(encoding="utf-8") if inline_css else "",
    )
