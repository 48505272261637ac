"""Content transformer: prompt, model call, response repair and sanitizing."""

from transform.parsing import parse_api_response, validate_api_response
from transform.sanitize import sanitize_html
from transform.transformer import ContentTransformer

__all__ = ["ContentTransformer", "parse_api_response", "sanitize_html", "validate_api_response"]
