"""Jinja2 prompt and report templates."""

from .template_renderer import get_template_env, render_template

__all__ = ["get_template_env", "render_template"]
