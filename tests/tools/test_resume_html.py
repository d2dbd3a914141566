from __future__ import annotations

from libs.core.models import ResumeDocument
from libs.tools.resume_html import render_resume_html


def _resume(**overrides) -> ResumeDocument:
    payload = {
        "name": "Ada Lovelace",
        "title": "Staff Engineer",
        "contact": {"email": "ada@example.com", "github": "github.com/ada"},
        "summary": "Builds analytical engines.",
        "skills": {"core": ["Python", "SQL"], "tools": ["Docker"]},
        "experience": [
            {
                "company": "Analytical Co",
                "role": "Staff Engineer",
                "location": "London",
                "startDate": "2019",
                "endDate": "Present",
                "bullets": ["Cut billing costs by 30%."],
            }
        ],
    }
    payload.update(overrides)
    return ResumeDocument.model_validate(payload)


def test_renders_sections_and_contact() -> None:
    html = render_resume_html(_resume())

    assert html.lstrip().startswith('<article class="resume">')
    assert "<h1>Ada Lovelace</h1>" in html
    assert "<span>ada@example.com</span>" in html
    assert "<span>github.com/ada</span>" in html
    assert "Python, SQL" in html
    assert "<h3>Tools</h3>" in html
    assert "<h3>Other</h3>" not in html
    assert "2019 – Present • London" in html
    assert "<li>Cut billing costs by 30%.</li>" in html


def test_absent_optional_fields_are_omitted() -> None:
    html = render_resume_html(_resume(contact={}, summary=""))

    assert "undefined" not in html
    assert "None" not in html
    assert 'class="contact"' not in html
    assert "Professional Summary" not in html
    assert "Projects" not in html
    assert "Education" not in html
    assert "Certifications" not in html


def test_optional_sections_render_when_present() -> None:
    html = render_resume_html(
        _resume(
            projects=[{"name": "Forge", "description": "Resume tool", "link": "forge.dev"}],
            education=[{"school": "University of London", "degree": "BSc", "graduationDate": "2012"}],
            certifications=["AWS Solutions Architect"],
        )
    )

    assert "<h4>Forge</h4>" in html
    assert "forge.dev" in html
    assert "<h4>BSc</h4>" in html
    assert "University of London" in html
    assert "<li>AWS Solutions Architect</li>" in html


def test_text_is_escaped() -> None:
    html = render_resume_html(_resume(name="<script>alert(1)</script>"))
    assert "<script>" not in html
    assert "&lt;script&gt;" in html


def test_inline_css_is_embedded() -> None:
    assert "<style>" in render_resume_html(_resume(), inline_css=True)
    assert "<style>" not in render_resume_html(_resume())
