"""Deterministic resource scoring: SEO completeness and read time."""
import html
import math
import re

import bleach

WORDS_PER_MINUTE = 200
MAX_SLUG_LENGTH = 75

_WORD_RE = re.compile(r"[\w'-]+")


def strip_tags(content: str | None) -> str:
    if not content:
        return ""
    return html.unescape(bleach.clean(content, tags=[], strip=True))


def word_count(content: str | None) -> int:
    return len(_WORD_RE.findall(strip_tags(content)))


def estimate_read_time(content: str | None) -> int:
    """Minutes at 200 wpm, never below 1."""
    return max(1, math.ceil(word_count(content) / WORDS_PER_MINUTE))


def _title_points(title: str | None) -> int:
    if not title:
        return 0
    length = len(title)
    if 30 <= length <= 60:
        return 25
    if 20 <= length <= 70:
        return 15
    return 10


def _meta_description_points(meta_description: str | None) -> int:
    if not meta_description:
        return 0
    length = len(meta_description)
    if 120 <= length <= 160:
        return 20
    if 100 <= length <= 180:
        return 15
    return 10


def _content_points(content: str | None) -> int:
    words = word_count(content)
    if words >= 1000:
        return 15
    if words >= 500:
        return 10
    if words >= 300:
        return 5
    return 0


def _tag_points(tags: list[str] | None) -> int:
    count = len(tags or [])
    if count >= 3:
        return 10
    if count >= 1:
        return 5
    return 0


def compute_seo_score(resource) -> int:
    """0-100 completeness score. Each component only adds points, so filling a gap never lowers it."""
    score = (
        _title_points(resource.title)
        + _meta_description_points(resource.meta_description)
        + _content_points(resource.content)
        + (10 if resource.featured_image else 0)
        + _tag_points(resource.tags)
        + (5 if resource.category_id else 0)
        + (10 if resource.excerpt else 0)
        + (5 if resource.slug and len(resource.slug) <= MAX_SLUG_LENGTH else 0)
    )
    return min(score, 100)
