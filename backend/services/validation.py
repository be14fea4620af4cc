import json
import re
from typing import Any

from errors import InvalidInput
from models import PortraitRequest

MAX_MOOD_LENGTH = 50
MIN_ENERGY = 1
MAX_ENERGY = 10
MAX_JOURNAL_LENGTH = 2000
MAX_TAGS = 10
MAX_TAG_LENGTH = 30

TAG_PATTERN = re.compile(r"<[^>]*>")


def strip_markup(text: str) -> str:
    """Removes anything that looks like an HTML/XML tag and trims the rest."""
    return TAG_PATTERN.sub("", text).strip()


def _clean_energy(energy: Any) -> int:
    # bool is an int subclass, but `true` is not an energy level
    if isinstance(energy, bool) or not isinstance(energy, (int, float)):
        raise InvalidInput("Energy must be between 1 and 10.")
    if not MIN_ENERGY <= energy <= MAX_ENERGY or energy != int(energy):
        raise InvalidInput("Energy must be between 1 and 10.")
    return int(energy)


def _tag_text(tag: Any) -> str:
    # JSON spelling for non-strings: true, null, {"a": 1}
    return tag if isinstance(tag, str) else json.dumps(tag)


def _clean_tags(tags: Any) -> str:
    if not isinstance(tags, list):
        return ""
    return ", ".join(_tag_text(tag)[:MAX_TAG_LENGTH] for tag in tags[:MAX_TAGS])


def validate_portrait_request(body: Any) -> PortraitRequest:
    """
    Validates a decoded request body and returns the sanitized fields.

    Raises InvalidInput with a client-facing message on the first problem
    found. Tags never fail validation; they are clipped instead.
    """
    if not isinstance(body, dict):
        raise InvalidInput("Invalid request body.")

    mood = body.get("mood")
    if not mood or not isinstance(mood, str) or len(mood) > MAX_MOOD_LENGTH:
        raise InvalidInput("Invalid mood input.")

    if body.get("energy") is None:
        raise InvalidInput("Energy must be between 1 and 10.")
    energy = _clean_energy(body["energy"])

    journal = body.get("journal") or ""
    if not isinstance(journal, str):
        raise InvalidInput("Journal entry must be text.")
    if len(journal) > MAX_JOURNAL_LENGTH:
        raise InvalidInput("Journal entry too long (max 2000 chars).")

    return PortraitRequest(
        mood=mood,
        energy=energy,
        tags=_clean_tags(body.get("tags")),
        journal=strip_markup(journal),
    )
