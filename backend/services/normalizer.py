import json
import logging
import re
from typing import Any

from errors import ParseError
from models import UpstreamResponse

logger = logging.getLogger(__name__)

FENCE_PATTERN = re.compile(r"```json|```")


def extract_text(response: UpstreamResponse) -> str:
    return response.first_text()


def strip_code_fences(text: str) -> str:
    """Drops Markdown code fence markers the model likes to wrap JSON in."""
    return FENCE_PATTERN.sub("", text).strip()


def _reject_constant(name: str):
    # NaN and Infinity are not valid JSON
    raise ValueError(f"Invalid JSON constant: {name}")


def parse_reading(text: str) -> Any:
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except ValueError as e:
        logger.error(f"JSON parse error: {e}")
        raise ParseError()


def normalize(response: UpstreamResponse) -> Any:
    """Provider payload -> parsed portrait reading. No repair, no retry."""
    return parse_reading(strip_code_fences(extract_text(response)))
