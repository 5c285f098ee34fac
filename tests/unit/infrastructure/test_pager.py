"""Tests for the exhaustive pager."""

import threading

import pytest

from catalog_resolver.domain.catalog import Page
from catalog_resolver.domain.exceptions import FetchFailedError, PaginationCancelledError, ValidationError
from catalog_resolver.infrastructure.pagination.pager import Pager


def numbered_items(count, start=0):
    return [{"id": f"item-{n}", "name": f"item {n}", "n": n} for n in range(start, start + count)]


def full_pages(*sizes):
    """Pages with the given item counts and no exhaustion signal."""
    pages, start = [], 0
    for size in sizes:
        pages.append(Page(items=numbered_items(size, start)))
        start += size
    return pages


@pytest.mark.unit
class TestPagerCollect:
    """Walking a paged catalog to exhaustion."""

    def test_short_last_page_stops_the_walk(self, make_fetcher):
        fetcher = make_fetcher(full_pages(25, 10))

        items = Pager(page_size=25).collect(fetcher)

        assert len(items) == 35
        assert fetcher.calls == 2
        assert [r.index for r in fetcher.requests] == [1, 2]
        assert all(r.size == 25 for r in fetcher.requests)

    @pytest.mark.parametrize("full", [0, 1, 3])
    def test_full_pages_then_empty_page(self, make_fetcher, full):
        fetcher = make_fetcher(full_pages(*([10] * full)))

        items = Pager(page_size=10).collect(fetcher)

        assert len(items) == full * 10
        assert fetcher.calls == full + 1

    def test_items_keep_page_then_in_page_order(self, make_fetcher):
        fetcher = make_fetcher(full_pages(3, 3, 1), first_page_index=1)

        items = Pager(page_size=3).collect(fetcher)

        assert [item.lookup("n").value for item in items] == list(range(7))

    def test_empty_first_page(self, make_fetcher):
        fetcher = make_fetcher([Page()])

        assert Pager().collect(fetcher) == []
        assert fetcher.calls == 1

    def test_zero_based_indexing(self, make_fetcher):
        fetcher = make_fetcher(full_pages(2, 2), first_page_index=0)

        items = Pager(page_size=2, first_page_index=0).collect(fetcher)

        assert len(items) == 4
        assert [r.index for r in fetcher.requests] == [0, 1, 2]

    def test_has_more_false_stops_on_full_page(self, make_fetcher):
        fetcher = make_fetcher([Page(items=numbered_items(5), has_more=False)])

        assert len(Pager(page_size=5).collect(fetcher)) == 5
        assert fetcher.calls == 1

    def test_has_more_true_continues_past_short_page(self, make_fetcher):
        fetcher = make_fetcher(
            [Page(items=numbered_items(2), has_more=True), Page(items=numbered_items(1, 2), has_more=False)]
        )

        assert len(Pager(page_size=5).collect(fetcher)) == 3
        assert fetcher.calls == 2

    def test_total_rows_reached(self, make_fetcher):
        fetcher = make_fetcher(
            [Page(items=numbered_items(10), total_rows=20), Page(items=numbered_items(10, 10), total_rows=20)]
        )

        assert len(Pager(page_size=10).collect(fetcher)) == 20
        assert fetcher.calls == 2

    def test_continuation_token_is_passed_on(self, make_fetcher):
        fetcher = make_fetcher(
            [
                Page(items=numbered_items(2), next_token="t-1"),
                Page(items=numbered_items(2, 2), next_token="t-2"),
                Page(items=numbered_items(1, 4)),
            ]
        )

        items = Pager(page_size=2).collect(fetcher)

        assert len(items) == 5
        assert [r.token for r in fetcher.requests] == [None, "t-1", "t-2"]

    def test_mapping_and_list_pages(self, make_fetcher):
        fetcher = make_fetcher([{"items": numbered_items(2), "has_more": True}, numbered_items(1, 2)])

        items = Pager(page_size=2).collect(fetcher)

        assert [item.identifier() for item in items] == ["item-0", "item-1", "item-2"]

    def test_none_page_is_empty(self, make_fetcher):
        fetcher = make_fetcher([None])

        assert Pager().collect(fetcher) == []


@pytest.mark.unit
class TestPagerFailures:
    """Fetch failures abort the walk without a partial result."""

    @pytest.mark.parametrize("fail_at", [1, 2, 3])
    def test_failed_fetch_raises_with_page_index(self, make_fetcher, fail_at):
        error = ConnectionError("connection reset by peer")
        fetcher = make_fetcher(full_pages(5, 5, 5, 2), fail_at=fail_at, error=error)

        with pytest.raises(FetchFailedError) as exc_info:
            Pager(page_size=5).collect(fetcher)

        assert exc_info.value.page_index == fail_at
        assert exc_info.value.__cause__ is error
        assert exc_info.value.cause is error
        assert fetcher.calls == fail_at

    def test_malformed_page(self, make_fetcher):
        fetcher = make_fetcher([{"items": "not a list of records"}])

        with pytest.raises(FetchFailedError) as exc_info:
            Pager().collect(fetcher)

        assert exc_info.value.page_index == 1

    def test_cancellation_between_fetches(self, make_fetcher):
        cancel = threading.Event()
        pages = full_pages(2, 2, 2)

        class CancellingFetcher:
            def __init__(self):
                self.inner = make_fetcher(pages)

            def __call__(self, request):
                page = self.inner(request)
                if request.index == 2:
                    cancel.set()
                return page

        fetcher = CancellingFetcher()

        with pytest.raises(PaginationCancelledError) as exc_info:
            Pager(page_size=2).collect(fetcher, cancel_event=cancel)

        assert exc_info.value.page_index == 3
        assert fetcher.inner.calls == 2
        assert isinstance(exc_info.value, FetchFailedError)

    def test_cancelled_before_first_fetch(self, make_fetcher):
        cancel = threading.Event()
        cancel.set()
        fetcher = make_fetcher(full_pages(2))

        with pytest.raises(PaginationCancelledError):
            Pager().collect(fetcher, cancel_event=cancel)

        assert fetcher.calls == 0

    def test_max_pages_guard(self):
        def endless(request):
            return Page(items=numbered_items(2, request.index * 2), has_more=True)

        with pytest.raises(FetchFailedError) as exc_info:
            Pager(page_size=2, max_pages=4).collect(endless)

        assert "exhaustion" in exc_info.value.message


@pytest.mark.unit
class TestPagerConfiguration:
    @pytest.mark.parametrize(
        "kwargs",
        [{"page_size": 0}, {"first_page_index": 2}, {"max_pages": 0}],
    )
    def test_invalid_arguments(self, kwargs):
        with pytest.raises(ValidationError):
            Pager(**kwargs)

    def test_repr(self):
        assert repr(Pager(page_size=10)) == "Pager(page_size=10, first_page_index=1, max_pages=1000)"
