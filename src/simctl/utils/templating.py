"""Utility for rendering the Jinja2 templates shipped with simctl."""

from datetime import datetime
import logging
from pathlib import Path
import shlex

from jinja2 import Environment, FileSystemLoader, StrictUndefined

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates"


def strftime_filter(value, format="%Y-%m-%d %H:%M:%S"):
    """Custom Jinja2 filter for strftime formatting."""
    if isinstance(value, datetime):
        return value.strftime(format)
    return str(value)


def shquote_filter(value) -> str:
    """Quote a value for safe use as one shell word."""
    return shlex.quote(str(value))


def render_template(template_name: str, **kwargs) -> str:
    """
    Render a Jinja2 template with the given context.

    Args:
        template_name: The name of the template file.
        **kwargs: The context variables to pass to the template.

    Returns:
        The rendered template as a string.
    """
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    env.filters["strftime"] = strftime_filter
    env.filters["shquote"] = shquote_filter

    try:
        template = env.get_template(template_name)
        return template.render(**kwargs)
    except Exception as e:
        logger.error(f"Error rendering template {template_name}: {e}")
        raise
