from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union

import jinja2
from loguru import logger

from santamail.services.matching import Assignment

DEFAULT_TEMPLATE_PATH = "templates/email_template.html"

FORMAT_SUFFIXES = {".txt"}
JINJA_SUFFIXES = {".html", ".htm", ".j2", ".jinja"}
HTML_SUFFIXES = {".html", ".htm"}


class TemplateError(RuntimeError):
    pass


class MessageTemplate(Protocol):
    subtype: str

    def render(self, assignment: Assignment) -> str:
        ...


def _context(assignment: Assignment) -> Dict[str, Any]:
    return {
        "giver": assignment.giver,
        "recipient": assignment.recipient,
        "assignment": assignment,
    }


class FormatTemplate:
    subtype = "plain"

    def __init__(self, source: str) -> None:
        self.source = source

    def render(self, assignment: Assignment) -> str:
        try:
            return self.source.format(**_context(assignment))
        except (KeyError, AttributeError, IndexError, TypeError, ValueError) as exc:
            raise TemplateError(f"Failed to render template: {exc!r}") from exc


class JinjaTemplate:
    def __init__(self, template: jinja2.Template, subtype: str = "plain") -> None:
        self._template = template
        self.subtype = subtype

    @classmethod
    def from_string(cls, source: str, subtype: str = "plain", autoescape: bool = False) -> "JinjaTemplate":
        env = jinja2.Environment(undefined=jinja2.StrictUndefined, autoescape=autoescape)
        try:
            return cls(env.from_string(source), subtype=subtype)
        except jinja2.TemplateSyntaxError as exc:
            raise TemplateError(f"Invalid template syntax: {exc}") from exc

    def render(self, assignment: Assignment) -> str:
        try:
            return self._template.render(**_context(assignment))
        except (jinja2.TemplateError, TypeError, ValueError, ArithmeticError) as exc:
            raise TemplateError(f"Failed to render template: {exc}") from exc


def load_template(path: Optional[Union[str, Path]] = None) -> MessageTemplate:
    template_path = Path(path or DEFAULT_TEMPLATE_PATH)
    suffix = template_path.suffix.lower()
    if suffix not in FORMAT_SUFFIXES | JINJA_SUFFIXES:
        raise TemplateError(f"Unsupported template type: {template_path}")

    try:
        source = template_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise TemplateError(f"Failed to load email template {template_path}: {exc}") from exc

    logger.bind(path=str(template_path)).debug("Template loaded")

    if suffix in FORMAT_SUFFIXES:
        return FormatTemplate(source)

    is_html = suffix in HTML_SUFFIXES
    return JinjaTemplate.from_string(
        source,
        subtype="html" if is_html else "plain",
        autoescape=is_html,
    )
