from __future__ import annotations

import os

from patchgen.filters import build_path_filter


def test_empty_filter_matches_everything() -> None:
    path_filter = build_path_filter()

    assert path_filter.is_empty
    assert path_filter.matches("any/path.txt")


def test_include_patterns_match_at_any_depth() -> None:
    path_filter = build_path_filter(include_patterns=["*.png"])

    assert path_filter.matches("logo.png")
    assert path_filter.matches("img/icons/logo.png")
    assert not path_filter.matches("docs/readme.txt")


def test_exclude_wins_over_include() -> None:
    path_filter = build_path_filter(include_patterns=["img/*"], exclude_patterns=["*.tmp"])

    assert path_filter.matches("img/logo.png")
    assert not path_filter.matches("img/scratch.tmp")


def test_directory_prefix_and_windows_style_patterns() -> None:
    path_filter = build_path_filter(exclude_patterns=[".\\cache\\", "  "])

    assert path_filter.exclude_patterns == ("cache/",)
    assert not path_filter.matches("cache/blob.bin")
    assert path_filter.matches("data/blob.bin")


def test_patterns_are_matched_against_posix_form_of_host_paths() -> None:
    path_filter = build_path_filter(include_patterns=["img/*.png"])

    assert path_filter.matches(os.path.join("img", "logo.png"))
    assert not path_filter.is_empty
