"""
Feedback Normalizer
===================
Turns the analysis service's feedback callback into one canonical
structure per feedback category.

The callback has been sent in three encodings over time, and a single
payload may carry several of them for the same category:

1. Flat-scalar shape (preferred):  wordChoiceScore, wordChoiceDescription, ...
2. Legacy nested-object shape:     wordChoice: {"score": .., "description": ..}
3. Legacy plain-string shape:      wordChoiceFeedback: "Nice vocabulary"

Each category is parsed into exactly one of those shapes (first match in
that order wins) and the shape is then normalized. Nothing in here raises
on malformed input; unreadable text ends up as the description.
"""
import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

from speakeasy.models import (
    Category,
    FEEDBACK_TYPES,
    FillerWordFeedback,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CategoryKeys:
    """Payload keys that may carry one category's feedback."""

    flat: Tuple[Tuple[str, str], ...]  # (payload key, member name)
    nested: str
    text: str


CATEGORY_KEYS = {
    Category.WORD_CHOICE: CategoryKeys(
        flat=(("wordChoiceScore", "score"), ("wordChoiceDescription", "description")),
        nested="wordChoice",
        text="wordChoiceFeedback",
    ),
    Category.BODY_LANGUAGE: CategoryKeys(
        flat=(("bodyLanguageScore", "score"), ("bodyLanguageDescription", "description")),
        nested="bodyLanguage",
        text="bodyLanguageFeedback",
    ),
    Category.FILLER_WORDS: CategoryKeys(
        flat=(
            ("fillerWordCount", "count"),
            ("fillerWordScore", "score"),
            ("fillerWordList", "list"),
            ("fillerWordDescription", "description"),
        ),
        nested="fillerWords",
        text="fillerWordFeedback",
    ),
}


# =============================================================================
# PAYLOAD SHAPES
# =============================================================================

@dataclass(frozen=True)
class FlatShape:
    category: Category
    members: Dict[str, Any]


@dataclass(frozen=True)
class NestedShape:
    category: Category
    members: Dict[str, Any]


@dataclass(frozen=True)
class TextShape:
    category: Category
    text: str


FeedbackShape = Union[FlatShape, NestedShape, TextShape]


def _parse_text(category: Category, text: str) -> FeedbackShape:
    """Read text that may hold a JSON object; anything else stays text."""
    try:
        decoded = json.loads(text)
    except (ValueError, TypeError):
        return TextShape(category, text)
    if isinstance(decoded, dict):
        return NestedShape(category, decoded)
    return TextShape(category, text)


def parse_shape(payload: dict, category: Category) -> Optional[FeedbackShape]:
    """Find which encoding ``payload`` uses for ``category``, if any."""
    keys = CATEGORY_KEYS[category]

    # Presence, not truthiness: a score of 0 or an empty list still counts.
    flat = {member: payload[key] for key, member in keys.flat if key in payload}
    if flat:
        return FlatShape(category, flat)

    nested = payload.get(keys.nested)
    if isinstance(nested, dict):
        return NestedShape(category, nested)
    if isinstance(nested, str) and nested:
        return _parse_text(category, nested)

    text = payload.get(keys.text)
    if text is None:
        return None
    if isinstance(text, dict):
        return NestedShape(category, text)
    if isinstance(text, str):
        return _parse_text(category, text)
    return TextShape(category, coerce_description(text))


# =============================================================================
# VALUE COERCION
# =============================================================================

def coerce_score(value) -> Optional[Union[int, float]]:
    """Return a finite number, or None for anything that isn't one."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        s = value.strip()
        try:
            return int(s)
        except ValueError:
            pass
        try:
            number = float(s)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def coerce_count(value) -> int:
    number = coerce_score(value)
    if number is None:
        return 0
    return max(0, int(number))


def coerce_description(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def parse_word_list(value) -> list:
    """Split a comma-separated string (or clean an array) into filler words.

    "um, uh ,  like" -> ["um", "uh", "like"]; empty tokens are dropped.
    """
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(',')
    elif isinstance(value, (list, tuple)):
        items = [item for item in value if item is not None]
    else:
        return []
    words = []
    for item in items:
        word = str(item).strip()
        if word:
            words.append(word)
    return words


# =============================================================================
# NORMALIZATION
# =============================================================================

def normalize_shape(shape: FeedbackShape):
    """Build the category's feedback structure from a parsed shape."""
    feedback_type = FEEDBACK_TYPES[shape.category]

    if isinstance(shape, TextShape):
        return feedback_type(description=shape.text)

    members = shape.members
    if feedback_type is FillerWordFeedback:
        return FillerWordFeedback(
            count=coerce_count(members.get("count")),
            score=coerce_score(members.get("score")),
            list=parse_word_list(members.get("list")),
            description=coerce_description(members.get("description")),
        )
    return feedback_type(
        score=coerce_score(members.get("score")),
        description=coerce_description(members.get("description")),
    )


def normalize(payload: dict) -> dict:
    """Normalize a feedback callback payload.

    Returns a mapping from Category to its feedback structure, holding only
    the categories the payload actually reports.
    """
    if not isinstance(payload, dict):
        return {}

    result = {}
    for category in Category:
        shape = parse_shape(payload, category)
        if shape is None:
            continue
        logger.debug("Feedback for %s uses %s", category.value, type(shape).__name__)
        result[category] = normalize_shape(shape)
    return result


@dataclass(frozen=True)
class TopLevelFeedback:
    """Overall score and free-form feedback blob, when the payload has them."""

    has_score: bool = False
    score: Any = None
    has_raw: bool = False
    raw: Any = None


def extract_top_level(payload: dict) -> TopLevelFeedback:
    """Overall score and raw feedback. An explicit null score clears it;
    a value that is not a number is ignored so the stored score survives."""
    if not isinstance(payload, dict):
        return TopLevelFeedback()
    has_score = "score" in payload
    score = None
    if has_score:
        value = payload.get("score")
        score = coerce_score(value)
        if value is not None and score is None:
            logger.warning("Ignoring non-numeric top-level score %r", value)
            has_score = False
    has_raw = "feedback" in payload
    return TopLevelFeedback(
        has_score=has_score,
        score=score,
        has_raw=has_raw,
        raw=payload.get("feedback"),
    )


# =============================================================================
# STORED VALUES
# =============================================================================

def encode_feedback(feedback) -> Optional[str]:
    """Serialize a feedback structure for a text column."""
    if feedback is None:
        return None
    return json.dumps(feedback.to_dict())


def decode_feedback(category: Category, stored):
    """Read a stored category column back into its feedback structure.

    Rows written by the plain-string path hold free text rather than JSON;
    that text becomes the description.
    """
    if stored is None:
        return None
    if isinstance(stored, dict):
        return normalize_shape(NestedShape(category, stored))
    if isinstance(stored, str):
        return normalize_shape(_parse_text(category, stored))
    return normalize_shape(TextShape(category, coerce_description(stored)))
