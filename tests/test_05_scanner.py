#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Tests for bare link scanning."""
# -----------------------------------------------------------------------------

from __future__ import annotations

from defaultlinks.services.scanner import LinkScanner, followed_by_letter


# -----------------------------------------------------------------------------

def _scan(markup: str):
    return list(LinkScanner().scan(markup))


def test_finds_bare_links():
    occs = _scan("See [[Foo]] and [[Bar#Sec]].")
    assert [o.whole_text for o in occs] == ["[[Foo]]", "[[Bar#Sec]]"]
    assert occs[0].target == "Foo"
    assert occs[0].fragment is None
    assert occs[1].fragment == "Sec"


def test_piped_links_are_skipped():
    assert _scan("[[Foo|text]]") == []


def test_colon_links_are_skipped():
    assert _scan("[[:Foo]]") == []


def test_link_trail_letter_excludes_match():
    assert _scan("[[Foo]]s") == []


def test_non_letter_after_link_is_fine():
    assert [o.target for o in _scan("[[Foo]]'s [[Bar]]1")] == ["Foo", "Bar"]


def test_trail_check_is_ascii_only():
    assert [o.target for o in _scan("[[Foo]]é")] == ["Foo"]


def test_scan_resumes_after_trailed_link():
    occs = _scan("[[Foo]]s then [[Foo]].")
    assert len(occs) == 1
    assert occs[0].whole_text == "[[Foo]]"


def test_dedup_is_by_whole_text():
    occs = _scan("[[Foo]] [[Foo]] [[ Foo]] [[Foo ]]")
    assert [o.whole_text for o in occs] == ["[[Foo]]", "[[ Foo]]", "[[Foo ]]"]


def test_percent_encoded_target_is_decoded():
    occ = _scan("[[Foo%20Bar]]")[0]
    assert occ.target == "Foo Bar"
    assert occ.whole_text == "[[Foo%20Bar]]"


def test_decoded_angle_brackets_are_escaped():
    assert _scan("[[A%3Cb%3E]]")[0].target == "A&lt;b&gt;"


def test_followed_by_letter():
    assert followed_by_letter("ab", 1)
    assert not followed_by_letter("a1", 1)
    assert not followed_by_letter("a", 1)
