#!/usr/bin/env python3

"""Slug normalization matching NetBox's own slugify output."""

from __future__ import annotations

import re

from pypinyin import lazy_pinyin

# NetBox computes slugs with a JavaScript regex: \w is ASCII-only, \s is Unicode.
_DISALLOWED = re.compile(r"[^A-Za-z0-9_\-.\s]")
_EDGES = re.compile(r"^[\s.]+|[\s.]+$")
_SEPARATORS = re.compile(r"[\-.\s]+")
_CJK = re.compile(r"[\u3400-\u9fff]")


def slugify(text: str, transliterate: bool = False) -> str:
    """Normalize text into a NetBox slug.

    Steps, in order: drop every character that is not an ASCII word
    character, hyphen, period or whitespace (any Unicode space); trim
    leading/trailing whitespace and periods; collapse runs of hyphens,
    periods and whitespace into one hyphen; lower-case. No length cap is
    applied.

    Args:
        text: Human readable name or model.
        transliterate: Convert CJK characters to pinyin before normalizing.

    Returns:
        str: Slug, possibly empty.
    """
    if transliterate and _CJK.search(text):
        text = " ".join(lazy_pinyin(text))
    slug = _DISALLOWED.sub("", text)
    slug = _EDGES.sub("", slug)
    slug = _SEPARATORS.sub("-", slug)
    return slug.lower()
