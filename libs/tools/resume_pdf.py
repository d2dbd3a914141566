from __future__ import annotations

from libs.core.models import ResumeDocument

from .resume_html import render_resume_html


class PdfRenderError(RuntimeError):
    pass


def render_resume_pdf(resume: ResumeDocument) -> bytes:
    # WeasyPrint pulls in native libraries; keep the import off the app startup path.
    try:
        from weasyprint import HTML
    except (ImportError, OSError) as exc:
        raise PdfRenderError(f"WeasyPrint is unavailable: {exc}") from exc
    html = render_resume_html(resume, inline_css=True)
    return HTML(string=f"<!doctype html><html><body>{html}</body></html>").write_pdf()
