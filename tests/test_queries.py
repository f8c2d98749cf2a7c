# Tests for filter assembly and cursor paging

import urllib.parse

import pytest

from swo.api.models import Direction, TimeRange
from swo.api.queries import (
    DEFAULT_PAGE_SIZE,
    FOLLOW_OVERRIDES,
    NO_OVERRIDES,
    ParamOverrides,
    build_free_text,
    build_query_filter,
    cursor_request,
    iter_pages,
)
from swo.cancel import Cancelled, CancelToken

CURSOR = "/v1/logs?direction=forward&pageSize=1000&skipToken=abc&endTime=2000-01-01T10%3A00%3A28Z"


def _query(url):
    parts = urllib.parse.urlsplit(url)
    return parts.path, urllib.parse.parse_qsl(parts.query, keep_blank_values=True)


class TestBuildFreeText:
    def test_system_and_args(self):
        assert build_free_text("web1", ["err", "-debug"]) == 'host:"web1" err -debug'

    def test_system_only(self):
        assert build_free_text("web1", None) == 'host:"web1"'

    def test_args_only(self):
        assert build_free_text(None, ["err", "-debug"]) == "err -debug"

    def test_neither(self):
        assert build_free_text(None, None) is None
        assert build_free_text("", []) is None

    def test_quoted_phrase_is_kept_verbatim(self):
        assert build_free_text("sys", ['"access denied"', "1.2.3.4", "-sshd"]) == 'host:"sys" "access denied" 1.2.3.4 -sshd'


class TestBuildQueryFilter:
    def test_defaults(self):
        query_filter = build_query_filter()
        assert query_filter.direction is Direction.FORWARD
        assert query_filter.page_size == DEFAULT_PAGE_SIZE == 1000
        assert query_filter.to_params() == [("direction", "forward"), ("pageSize", "1000")]

    def test_follow_uses_tail_direction(self):
        assert build_query_filter(follow=True).to_params()[0] == ("direction", "tail")

    def test_all_fields(self):
        query_filter = build_query_filter(
            group="groupValue",
            system="web1",
            args=["err"],
            time_range=TimeRange(start="2000-01-01T10:00:20Z", end="2000-01-01T10:00:28Z"),
        )
        assert query_filter.to_params() == [
            ("direction", "forward"),
            ("pageSize", "1000"),
            ("group", "groupValue"),
            ("startTime", "2000-01-01T10:00:20Z"),
            ("endTime", "2000-01-01T10:00:28Z"),
            ("filter", 'host:"web1" err'),
        ]

    def test_empty_values_are_omitted(self):
        query_filter = build_query_filter(group="", time_range=TimeRange(start=None, end=""))
        keys = [key for key, _value in query_filter.to_params()]
        assert keys == ["direction", "pageSize"]

    def test_no_filter_param_without_system_or_args(self):
        keys = [key for key, _value in build_query_filter(group="g").to_params()]
        assert "filter" not in keys


class TestParamOverrides:
    def test_no_overrides_keeps_params(self):
        params = [("a", "1"), ("b", "2")]
        assert NO_OVERRIDES.apply(params) == params

    def test_drop(self):
        assert FOLLOW_OVERRIDES.apply([("startTime", "x"), ("endTime", "y")]) == [("startTime", "x")]

    def test_replace_wins_over_cursor_value(self):
        overrides = ParamOverrides(replace={"pageSize": "50"})
        assert overrides.apply([("pageSize", "1000"), ("skipToken", "t")]) == [("skipToken", "t"), ("pageSize", "50")]


class TestCursorRequest:
    def test_cursor_params_are_used_wholesale(self):
        path, params = cursor_request(CURSOR)
        assert path == "/v1/logs"
        assert params == [
            ("direction", "forward"),
            ("pageSize", "1000"),
            ("skipToken", "abc"),
            ("endTime", "2000-01-01T10:00:28Z"),
        ]

    def test_follow_strips_end_time(self):
        _path, params = cursor_request(CURSOR, FOLLOW_OVERRIDES)
        assert ("endTime", "2000-01-01T10:00:28Z") not in params
        assert ("skipToken", "abc") in params


class TestIterPages:
    def test_follows_cursor_then_stops(self, scripted_client, page):
        client = scripted_client([page("A", "B", next_cursor=CURSOR), page("C")])
        pages = list(iter_pages(client, [("direction", "forward"), ("pageSize", "1000")]))

        assert [e.message for p in pages for e in p.entries] == ["A", "B", "C"]
        assert len(client.requested) == 2
        path, params = _query(client.requested[1])
        assert path == "/v1/logs"
        assert params == _query(CURSOR)[1]

    def test_first_request_uses_filter_params(self, scripted_client, page):
        client = scripted_client([page("A")])
        list(iter_pages(client, build_query_filter(system="web1").to_params()))
        assert client.requested == [
            "https://api.example.com/v1/logs?direction=forward&pageSize=1000&filter=host%3A%22web1%22"
        ]

    def test_follow_overrides_apply_to_cursor_requests(self, scripted_client, page):
        client = scripted_client([page("A", next_cursor=CURSOR), page()])
        list(iter_pages(client, [("endTime", "2000-01-01T10:00:28Z")], overrides=FOLLOW_OVERRIDES))
        assert "endTime" in dict(_query(client.requested[0])[1])
        assert "endTime" not in dict(_query(client.requested[1])[1])

    def test_empty_cursor_makes_no_extra_request(self, scripted_client, page):
        client = scripted_client([page("A")])
        pages = list(iter_pages(client, []))
        assert len(pages) == 1
        assert len(client.requested) == 1

    def test_empty_page_is_not_an_error(self, scripted_client, page):
        client = scripted_client([page()])
        pages = list(iter_pages(client, []))
        assert pages[0].entries == []

    def test_cancelled_token_stops_before_request(self, scripted_client, page):
        client = scripted_client([page("A")])
        token = CancelToken()
        token.cancel()
        with pytest.raises(Cancelled):
            list(iter_pages(client, [], cancel=token))
        assert client.requested == []
