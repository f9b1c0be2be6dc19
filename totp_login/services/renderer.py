from pathlib import Path
from typing import Protocol
from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"


class TemplateRenderError(RuntimeError):
    """Raised when a page template cannot be loaded or rendered."""

    def __init__(self, template_name: str, cause: Exception):
        super().__init__(f"Template broken: {template_name}")
        self.template_name = template_name
        self.cause = cause


class TemplateRenderer(Protocol):
    def render(self, template_name: str, model: dict) -> bytes: ...


class Jinja2Renderer:
    def __init__(self, directory: Path = TEMPLATES_DIR):
        self._env = Environment(
            loader=FileSystemLoader(str(directory)),
            autoescape=select_autoescape(["html"]),
        )

    def render(self, template_name: str, model: dict) -> bytes:
        try:
            template = self._env.get_template(template_name)
            return template.render(**model).encode("utf-8")
        except TemplateError as e:
            raise TemplateRenderError(template_name, e) from e
