from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"])
)


def format_date(value, fmt="%d/%m/%Y"):
    return value.strftime(fmt) if value else ""


env.filters["date"] = format_date


def render_template(template_path: str, **context) -> str:
    template = env.get_template(template_path)
    return template.render(**context)
