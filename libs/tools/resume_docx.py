from __future__ import annotations

from io import BytesIO
from typing import Any, Dict, List, Optional

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH, WD_TAB_ALIGNMENT
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Inches, Pt
from docx.text.paragraph import Paragraph

from libs.core.models import ResumeDocument

_CONTACT_FIELDS = ("email", "phone", "location", "website", "linkedin", "github")
_SKILL_GROUPS = (("core", "Core"), ("tools", "Tools"), ("other", "Other"))


def render_resume_docx(resume: ResumeDocument) -> bytes:
    """Lay out a resume as a one-column Word document and return the file bytes."""
    data = resume.to_payload()
    document = Document()
    _apply_page_setup(document)

    _add_header(document, data)
    if data.get("summary"):
        _add_section_heading(document, "Professional Summary")
        document.add_paragraph(data["summary"])

    skills = data.get("skills", {})
    skill_lines = [(label, skills[key]) for key, label in _SKILL_GROUPS if skills.get(key)]
    if skill_lines:
        _add_section_heading(document, "Skills")
        for label, items in skill_lines:
            paragraph = document.add_paragraph()
            paragraph.paragraph_format.space_after = Pt(2)
            term = paragraph.add_run(f"{label}: ")
            term.bold = True
            paragraph.add_run(", ".join(items))

    if data.get("experience"):
        _add_section_heading(document, "Experience")
        for role in data["experience"]:
            dates = " – ".join(part for part in (role.get("startDate"), role.get("endDate")) if part)
            meta = " • ".join(part for part in (dates, role.get("location")) if part)
            _add_role_header(document, role.get("role", ""), meta)
            _add_italic_line(document, role.get("company", ""))
            _add_bullets(document, role.get("bullets"))

    if data.get("projects"):
        _add_section_heading(document, "Projects")
        for project in data["projects"]:
            _add_role_header(document, project.get("name", ""), project.get("link", ""))
            if project.get("technologies"):
                _add_italic_line(document, ", ".join(project["technologies"]))
            document.add_paragraph(project.get("description", ""))
            _add_bullets(document, project.get("bullets"))

    if data.get("education"):
        _add_section_heading(document, "Education")
        for school in data["education"]:
            heading = school.get("degree") or school.get("school", "")
            _add_role_header(document, heading, school.get("graduationDate", ""))
            if school.get("degree"):
                _add_italic_line(document, school.get("school", ""))
            _add_bullets(document, school.get("details"))

    if data.get("certifications"):
        _add_section_heading(document, "Certifications")
        _add_bullets(document, data["certifications"])

    buffer = BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def _apply_page_setup(document: Document) -> None:
    normal_style = document.styles["Normal"]
    normal_style.font.name = "Calibri"
    normal_style.font.size = Pt(10.5)
    normal_style.paragraph_format.space_after = Pt(2)
    section = document.sections[0]
    for attr in ("top_margin", "bottom_margin", "left_margin", "right_margin"):
        setattr(section, attr, Inches(0.5))


def _add_header(document: Document, data: Dict[str, Any]) -> None:
    name = document.add_paragraph()
    name.alignment = WD_ALIGN_PARAGRAPH.CENTER
    run = name.add_run(data.get("name", ""))
    run.bold = True
    run.font.size = Pt(20)

    title = document.add_paragraph()
    title.alignment = WD_ALIGN_PARAGRAPH.CENTER
    title.add_run(data.get("title", "")).font.size = Pt(12)

    contact = data.get("contact", {})
    parts = [contact[key] for key in _CONTACT_FIELDS if contact.get(key)]
    if parts:
        line = document.add_paragraph(" • ".join(parts))
        line.alignment = WD_ALIGN_PARAGRAPH.CENTER


def _add_section_heading(document: Document, text: str) -> Paragraph:
    paragraph = document.add_paragraph()
    run = paragraph.add_run(text.upper())
    run.bold = True
    run.font.size = Pt(11)
    paragraph.paragraph_format.space_before = Pt(8)
    paragraph.paragraph_format.space_after = Pt(4)
    paragraph.paragraph_format.keep_with_next = True
    _set_paragraph_bottom_border(paragraph)
    return paragraph


def _add_role_header(document: Document, left: str, right: Optional[str]) -> Paragraph:
    paragraph = document.add_paragraph()
    _set_right_tab_stop(paragraph, document)
    left_run = paragraph.add_run(left.strip())
    left_run.bold = True
    if right:
        paragraph.add_run("\t")
        paragraph.add_run(right.strip())
    paragraph.paragraph_format.space_before = Pt(4)
    paragraph.paragraph_format.space_after = Pt(0)
    paragraph.paragraph_format.keep_with_next = True
    return paragraph


def _add_italic_line(document: Document, text: str) -> None:
    if not text:
        return
    paragraph = document.add_paragraph()
    paragraph.add_run(text).italic = True
    paragraph.paragraph_format.keep_with_next = True


def _add_bullets(document: Document, items: Optional[List[str]]) -> None:
    for item in items or []:
        paragraph = document.add_paragraph(item, style="List Bullet")
        paragraph.paragraph_format.space_after = Pt(1)


def _set_right_tab_stop(paragraph: Paragraph, document: Document) -> None:
    section = document.sections[0]
    usable_width = section.page_width - section.left_margin - section.right_margin
    paragraph.paragraph_format.tab_stops.add_tab_stop(usable_width, alignment=WD_TAB_ALIGNMENT.RIGHT)


def _set_paragraph_bottom_border(paragraph: Paragraph) -> None:
    p_pr = paragraph._p.get_or_add_pPr()
    p_bdr = p_pr.find(qn("w:pBdr"))
    if p_bdr is None:
        p_bdr = OxmlElement("w:pBdr")
        p_pr.append(p_bdr)
    bottom = OxmlElement("w:bottom")
    bottom.set(qn("w:val"), "single")
    bottom.set(qn("w:sz"), "6")
    bottom.set(qn("w:space"), "1")
    bottom.set(qn("w:color"), "999999")
    p_bdr.append(bottom)
