#!/usr/bin/env python3

import pytest

from netboxkit.utils.slug import slugify


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("ProLiant DL360 G7", "proliant-dl360-g7"),
        ("X9DRFF-iG+/-7G+/-iTG+/-7TG+", "x9drff-ig-7g-itg-7tg"),
        ("  ..Core Router..  ", "core-router"),
        ("a - b . c", "a-b-c"),
        ("under_score", "under_score"),
        ("Cisco Systems, Inc.", "cisco-systems-inc"),
        ("-leading-hyphen-", "-leading-hyphen-"),
        ("Zürich DC", "zrich-dc"),
        ("Cisco\u00a0Systems", "cisco-systems"),
        ("Rack\u3000A", "rack-a"),
        ("", ""),
    ],
)
def test_slugify_examples(text: str, expected: str) -> None:
    assert slugify(text) == expected


@pytest.mark.parametrize(
    "text",
    [
        "ProLiant DL360 G7",
        "X9DRFF-iG+/-7G+/-iTG+/-7TG+",
        " . - . ",
        "a.-.b",
        "Tab\tand\nnewline",
        "交换机 Switch",
        "--x--",
        "ÄÖÜ äöü",
    ],
)
def test_slugify_is_idempotent(text: str) -> None:
    once = slugify(text)
    assert slugify(once) == once


def test_slugify_has_no_length_cap() -> None:
    assert len(slugify("x" * 200)) == 200


def test_slugify_drops_cjk_by_default() -> None:
    assert slugify("交换机") == ""


def test_slugify_transliterates_cjk_when_asked() -> None:
    assert slugify("核心交换机 A1", transliterate=True) == "he-xin-jiao-huan-ji-a1"


def test_slugify_transliterate_leaves_ascii_alone() -> None:
    assert slugify("ProLiant DL360 G7", transliterate=True) == "proliant-dl360-g7"
