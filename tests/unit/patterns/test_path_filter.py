from __future__ import annotations

import logging
from pathlib import Path

import pytest

from devmirror.core.exceptions import FilterConstructionError
from devmirror.core.patterns import (
    FilterSpec,
    LazyFilter,
    PathFilter,
    Ready,
    Uninitialized,
    compile_pattern,
)


def _filter(tmp_path: Path, include=None, exclude=None) -> PathFilter:
    return PathFilter(FilterSpec.from_patterns(include, exclude), root=tmp_path)


def test_default_spec_mirrors_html_and_svg() -> None:
    spec = FilterSpec()
    assert spec.include_patterns == ("**/*.html", "**/*.svg")
    assert spec.exclude_patterns == ()


def test_globstar_matches_top_level_and_nested_files(tmp_path: Path) -> None:
    flt = _filter(tmp_path)
    assert flt.matches(tmp_path / "a.html")
    assert flt.matches(tmp_path / "sub" / "c.html")
    assert flt.matches(tmp_path / "deep" / "er" / "icon.svg")
    assert not flt.matches(tmp_path / "b.txt")


def test_relative_paths_are_resolved_against_root(tmp_path: Path) -> None:
    flt = _filter(tmp_path)
    assert flt.matches("templates/index.html")
    assert not flt.matches("templates/index.js")


def test_paths_outside_root_never_match(tmp_path: Path) -> None:
    root = tmp_path / "frontend"
    flt = PathFilter(FilterSpec(include_patterns=("**",)), root=root)
    assert not flt.matches(tmp_path / "other" / "index.html")
    assert not flt.matches("../index.html")
    assert not flt.matches(root)


def test_exclude_wins_over_include(tmp_path: Path) -> None:
    flt = _filter(tmp_path, exclude=["drafts/**"])
    assert flt.matches(tmp_path / "page.html")
    assert not flt.matches(tmp_path / "drafts" / "page.html")
    assert not flt.matches(tmp_path / "drafts" / "nested" / "page.html")


def test_matching_is_case_sensitive(tmp_path: Path) -> None:
    flt = _filter(tmp_path)
    assert not flt.matches(tmp_path / "INDEX.HTML")


def test_single_star_does_not_cross_directories(tmp_path: Path) -> None:
    flt = _filter(tmp_path, include=["*.html"])
    assert flt.matches(tmp_path / "index.html")
    assert not flt.matches(tmp_path / "sub" / "index.html")


def test_prefixed_globstar_matches_direct_children(tmp_path: Path) -> None:
    flt = _filter(tmp_path, include=["static/**/*.svg"])
    assert flt.matches(tmp_path / "static" / "logo.svg")
    assert flt.matches(tmp_path / "static" / "icons" / "logo.svg")
    assert not flt.matches(tmp_path / "logo.svg")


def test_brace_expansion_and_character_classes(tmp_path: Path) -> None:
    flt = _filter(tmp_path, include=["**/*.{html,svg}", "img/icon-[0-9].png"])
    assert flt.matches(tmp_path / "x.html")
    assert flt.matches(tmp_path / "x.svg")
    assert flt.matches(tmp_path / "img" / "icon-3.png")
    assert not flt.matches(tmp_path / "img" / "icon-a.png")


def test_wildcards_skip_dot_segments_unless_explicit(tmp_path: Path) -> None:
    flt = _filter(tmp_path, include=["**/*.html", ".well-known/*.html"])
    assert not flt.matches(tmp_path / ".cache" / "page.html")
    assert not flt.matches(tmp_path / ".hidden.html")
    assert flt.matches(tmp_path / ".well-known" / "page.html")


@pytest.mark.parametrize("pattern", ["", "   ", "img/[abc.png", "*.{html,svg", "a}.html"])
def test_compile_pattern_rejects_malformed_patterns(pattern: str) -> None:
    with pytest.raises(FilterConstructionError):
        compile_pattern(pattern)


def test_invalid_pattern_fails_closed_and_warns_once(tmp_path: Path, caplog) -> None:
    caplog.set_level(logging.WARNING, logger="devmirror")
    flt = _filter(tmp_path, include=["img/[abc.png", "**/*.html"])

    assert flt.matches(tmp_path / "index.html")
    assert not flt.matches(tmp_path / "img" / "[abc.png")
    assert not flt.matches(tmp_path / "img" / "a.png")

    warnings = [r for r in caplog.records if "[abc.png" in r.getMessage()]
    assert len(warnings) == 1


def test_lazy_filter_builds_once_and_reuses_instance(tmp_path: Path) -> None:
    lazy = LazyFilter(FilterSpec())
    assert isinstance(lazy.state, Uninitialized)
    assert not lazy.ready

    first = lazy.get(tmp_path)
    assert isinstance(lazy.state, Ready)
    assert lazy.get(tmp_path) is first
    # Root is fixed for the session once the filter exists.
    assert lazy.get(tmp_path / "elsewhere") is first


def test_identical_specs_build_equivalent_filters(tmp_path: Path) -> None:
    spec = FilterSpec(include_patterns=("**/*.html",), exclude_patterns=("tmp/**",))
    a = PathFilter(spec, tmp_path)
    b = PathFilter(spec, tmp_path)
    for rel in ["a.html", "tmp/a.html", "x/y.html", "b.txt"]:
        assert a.matches(rel) == b.matches(rel)


def test_escaped_braces_match_literally(tmp_path: Path) -> None:
    flt = _filter(tmp_path, include=["a\\{x,y\\}.html"])
    assert flt.matches(tmp_path / "a{x,y}.html")
    assert not flt.matches(tmp_path / "ax.html")
    assert not flt.matches(tmp_path / "ay.html")


def test_escaped_comma_stays_inside_alternative(tmp_path: Path) -> None:
    flt = _filter(tmp_path, include=["{a\\,b,c}.html"])
    assert flt.matches(tmp_path / "a,b.html")
    assert flt.matches(tmp_path / "c.html")
    assert not flt.matches(tmp_path / "b.html")
