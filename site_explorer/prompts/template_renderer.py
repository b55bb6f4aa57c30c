"""Template renderer for oracle prompts and the HTML report.

Templates live in the package's templates/ directory. Autoescaping is on
for *.html.j2 only; prompt templates are plain text.
"""

import json
from functools import lru_cache
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

TEMPLATES_DIR = Path(__file__).parent / "templates"


def _tojson_filter(value: object, indent: int = 2) -> str:
    """Pretty JSON without HTML escaping, for prompt templates."""
    return json.dumps(value, indent=indent, ensure_ascii=False, default=str)


@lru_cache(maxsize=1)
def get_template_env() -> Environment:
    """Get the configured Jinja2 environment."""
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(enabled_extensions=("html.j2",), default_for_string=False),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["pretty_json"] = _tojson_filter
    return env


def render_template(template_name: str, **context) -> str:
    """Render a template with the provided context.

    Raises:
        jinja2.TemplateNotFound: If template doesn't exist.
    """
    return get_template_env().get_template(template_name).render(**context)
