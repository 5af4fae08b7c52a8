import datetime as dt

import pytest

from pagegraph.kinds import Kind, get_output_format, kind_from_name, kind_lookup_names
from pagegraph.reporting import StepTimer
from pagegraph.utils import Memoized, join_url, to_datetime, urlize, urlize_path


def test_composite_kinds_contain_their_flags():
    assert Kind.HOME.has(Kind.SYSTEM)
    assert Kind.HOME.has(Kind.INDEX)
    assert Kind.TERM.has(Kind.SINGLE)
    assert Kind.TERM.has(Kind.TAXONOMY)
    assert not Kind.SECTION.has(Kind.SINGLE)
    assert int(Kind.HOME) == 28
    assert int(Kind.TERM) == 54


def test_kind_lookup_names_are_most_specific_first():
    assert kind_lookup_names(Kind.SINGLE) == ["single"]
    assert kind_lookup_names(Kind.HOME) == ["home", "section", "system", "index", "list"]
    assert kind_lookup_names(Kind.TERM) == [
        "term",
        "taxonomy",
        "istaxonomy",
        "section",
        "system",
        "list",
        "single",
    ]


def test_kind_from_name():
    assert kind_from_name("Home") == Kind.HOME
    assert kind_from_name("is_taxonomy") == Kind.IS_TAXONOMY
    assert kind_from_name("") is None
    with pytest.raises(ValueError):
        kind_from_name("gallery")


def test_output_formats():
    assert get_output_format("html").file_name() == "index.html"
    assert get_output_format("rss").file_name() == "index.xml"
    assert get_output_format("robots").file_name() == "robots.txt"
    with pytest.raises(ValueError):
        get_output_format("pdf")


@pytest.mark.parametrize(
    "text,expected",
    [
        ("Hello World!", "hello-world"),
        ("  C# & .NET  ", "c-net"),
        ("already-fine", "already-fine"),
        ("", ""),
    ],
)
def test_urlize(text, expected):
    assert urlize(text) == expected


def test_urlize_path_keeps_separators():
    assert urlize_path("/Blog/My Post/") == "/blog/my-post"
    assert urlize_path("/") == "/"
    assert urlize_path("docs//Getting Started") == "docs/getting-started"


def test_join_url():
    assert join_url("https://example.org/", "/blog/index.html") == "https://example.org/blog/index.html"
    assert join_url("", "/index.html") == "/index.html"


def test_to_datetime():
    assert to_datetime("2024-01-02") == dt.datetime(2024, 1, 2)
    assert to_datetime(dt.date(2024, 1, 2)) == dt.datetime(2024, 1, 2)
    assert to_datetime("2024-01-02T10:30:00") == dt.datetime(2024, 1, 2, 10, 30)
    assert to_datetime(None) is None
    with pytest.raises(ValueError):
        to_datetime("yesterday")


def test_memoized_computes_once_until_reset():
    calls = []
    memo = Memoized(lambda: calls.append(1) or len(calls))
    assert not memo.computed
    assert memo.get() == 1
    assert memo.get() == 1
    assert memo.computed
    memo.reset()
    assert memo.get() == 2


def test_step_timer_report():
    timer = StepTimer()
    timer.start("Parse content")
    timer.stop("Parse content", 3)
    report = timer.format_report("My Site")
    assert "Site 'My Site' created!" in report
    assert "Parse content" in report
    assert "Total" in report
    assert timer.count("Parse content") == 3


def test_step_timer_stop_without_start():
    with pytest.raises(ValueError, match="Step 'Missing' has not been started."):
        StepTimer().stop("Missing", 1)
