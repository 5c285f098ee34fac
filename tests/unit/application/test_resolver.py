"""Tests for the catalog resolver."""

from unittest.mock import Mock

import pytest

from catalog_resolver.application.resolver import CatalogResolver, summarize
from catalog_resolver.domain.catalog import CatalogItem, Page
from catalog_resolver.domain.exceptions import (
    AmbiguousError,
    FetchFailedError,
    InvalidFilterError,
    NotFoundError,
)
from catalog_resolver.domain.filters import (
    ALL,
    EXACTLY_ONE,
    Cardinality,
    ExpressionFilter,
    NameMatchFilter,
    SortKind,
    SortSpec,
)
from catalog_resolver.domain.outcome import NotFoundPolicy, OutcomeKind, Severity
from catalog_resolver.infrastructure.pagination.pager import Pager


def records(*raw):
    return [CatalogItem.from_mapping(r) for r in raw]


def names(items):
    return [item.lookup("name").value for item in items]


@pytest.mark.unit
class TestResolveExamples:
    """End-to-end resolution over a fetched catalog."""

    def test_expression_filter_with_all(self, make_fetcher):
        fetcher = make_fetcher(
            [Page(items=[{"name": "a", "vcpus": 2, "ram": 2048}, {"name": "b", "vcpus": 2, "ram": 4096},
                         {"name": "c", "vcpus": 4, "ram": 4096}])]
        )

        items = CatalogResolver().resolve_catalog(fetcher, ExpressionFilter(expression="vcpus==2 && ram>=2048"),
                                                  cardinality=ALL)

        assert names(items) == ["a", "b"]

    def test_descending_sort_first_one(self, machine_types):
        items = CatalogResolver().resolve(
            machine_types,
            ExpressionFilter(expression="vcpus >= 2"),
            SortSpec(field="name", descending=True),
            Cardinality.first(1),
        )

        assert names(items) == ["s1.2"]

    def test_regex_matching_two_images_is_ambiguous(self, images):
        catalog = records(*images)

        with pytest.raises(AmbiguousError) as exc_info:
            CatalogResolver().resolve(catalog, NameMatchFilter(pattern="^Ubuntu .*", regex=True), cardinality=EXACTLY_ONE)

        assert exc_info.value.match_count == 2
        assert set(exc_info.value.identifiers) == {"img-ubuntu-2204", "img-ubuntu-2404"}

    def test_pages_flow_through_the_pager(self, make_fetcher):
        first = [{"name": f"m{n}", "vcpus": n} for n in range(25)]
        second = [{"name": f"m{n}", "vcpus": n} for n in range(25, 35)]
        fetcher = make_fetcher([Page(items=first), Page(items=second)])

        items = CatalogResolver(pager=Pager(page_size=25)).resolve_catalog(fetcher, cardinality=ALL)

        assert len(items) == 35
        assert fetcher.calls == 2


@pytest.mark.unit
class TestReduce:
    """Cardinality reduction."""

    def setup_method(self):
        self.resolver = CatalogResolver(summary_limit=3)

    def test_exactly_one(self):
        catalog = records({"name": "s1.2"})

        assert names(self.resolver.reduce(catalog, EXACTLY_ONE)) == ["s1.2"]

    def test_not_found_lists_available_items(self, machine_types):
        with pytest.raises(NotFoundError) as exc_info:
            self.resolver.resolve(machine_types, ExpressionFilter(expression="vcpus == 64"))

        error = exc_info.value
        assert error.available == ("c1.2", "g1.1", "s1.2")
        assert "vcpus == 64" in error.message
        assert "and 1 more" in error.message

    def test_ambiguous_carries_every_identifier(self):
        catalog = records(*({"id": f"flavor-{n}", "cpu": 4} for n in range(7)))

        with pytest.raises(AmbiguousError) as exc_info:
            self.resolver.resolve(catalog, ExpressionFilter(expression="cpu == 4"))

        error = exc_info.value
        assert error.match_count == 7
        assert len(error.identifiers) == 7
        assert "flavor-0, flavor-1, flavor-2 and 4 more" in error.message
        assert "flavor-6" not in error.message

    def test_first_n_shorter_than_limit(self, machine_types):
        items = self.resolver.resolve(machine_types, ExpressionFilter(expression="vcpus == 2"),
                                      cardinality=Cardinality.first(5))

        assert names(items) == ["c1.2", "s1.2"]

    @pytest.mark.parametrize("cardinality", [ALL, Cardinality.first(2)])
    def test_empty_result_is_not_an_error_for_all_and_first_n(self, machine_types, cardinality):
        items = self.resolver.resolve(machine_types, ExpressionFilter(expression="vcpus == 64"), cardinality=cardinality)

        assert items == []

    def test_require_match_lists_available_items(self, machine_types):
        with pytest.raises(NotFoundError) as exc_info:
            self.resolver.resolve(
                machine_types, ExpressionFilter(expression="vcpus == 64"),
                cardinality=Cardinality.first(1), require_match=True,
            )

        assert "vcpus == 64" in exc_info.value.message
        assert exc_info.value.available == ("c1.2", "g1.1", "s1.2")

    def test_unfiltered_ambiguity_names_no_criteria(self):
        with pytest.raises(AmbiguousError) as exc_info:
            self.resolver.resolve(records({"id": "a"}, {"id": "b"}))

        assert exc_info.value.message == "2 catalog items matched, narrow the filter: a, b"

    def test_empty_catalog(self):
        with pytest.raises(NotFoundError) as exc_info:
            self.resolver.resolve([])

        assert exc_info.value.available == ()


@pytest.mark.unit
class TestSorting:
    def test_sort_is_stable_in_both_directions(self):
        catalog = records(
            {"name": "a", "rank": 1}, {"name": "b", "rank": 2}, {"name": "c", "rank": 1}, {"name": "d", "rank": 2}
        )
        resolver = CatalogResolver()

        ascending = resolver.resolve(catalog, sort_spec=SortSpec(field="rank"), cardinality=ALL)
        descending = resolver.resolve(catalog, sort_spec=SortSpec(field="rank", descending=True), cardinality=ALL)

        assert names(ascending) == ["a", "c", "b", "d"]
        assert names(descending) == ["b", "d", "a", "c"]

    def test_items_without_the_field_sort_last(self):
        catalog = records({"name": "x"}, {"name": "y", "rank": 2}, {"name": "z", "rank": 1})

        for descending in (False, True):
            items = CatalogResolver().resolve(
                catalog, sort_spec=SortSpec(field="rank", descending=descending), cardinality=ALL
            )
            assert names(items)[-1] == "x"

    def test_numbers_sort_before_text(self):
        catalog = records({"name": "t", "size": "large"}, {"name": "n", "size": 10})

        items = CatalogResolver().resolve(catalog, sort_spec=SortSpec(field="size"), cardinality=ALL)

        assert names(items) == ["n", "t"]

    def test_version_sort(self):
        catalog = records(
            {"name": "1.29.10"}, {"name": "1.30.0-rc1"}, {"name": "1.9.3"}, {"name": "1.30.0"}, {"name": "1.29.2"}
        )

        items = CatalogResolver().resolve(
            catalog, sort_spec=SortSpec(field="name", descending=True, kind=SortKind.VERSION), cardinality=ALL
        )

        assert names(items) == ["1.30.0", "1.30.0-rc1", "1.29.10", "1.29.2", "1.9.3"]

    def test_pre_releases_order_numerically(self):
        catalog = records({"name": "1.30.0rc2"}, {"name": "1.30.0rc10"}, {"name": "1.30.0"}, {"name": "1.29.9"})

        items = CatalogResolver().resolve(
            catalog, sort_spec=SortSpec(field="name", descending=True, kind=SortKind.VERSION), cardinality=ALL
        )

        assert names(items) == ["1.30.0", "1.30.0rc10", "1.30.0rc2", "1.29.9"]

    def test_unparsable_versions_sort_after_versions(self):
        catalog = records({"name": "latest"}, {"name": "1.2.0"}, {"name": "1.10.0"})

        items = CatalogResolver().resolve(
            catalog, sort_spec=SortSpec(field="name", kind=SortKind.VERSION), cardinality=ALL
        )

        assert names(items) == ["1.2.0", "1.10.0", "latest"]

    def test_sort_keys_apply_in_priority_order(self):
        catalog = records(
            {"name": "1.29.3", "state": "deprecated"},
            {"name": "1.30.1", "state": "preview"},
            {"name": "1.28.5", "state": "supported"},
            {"name": "1.28.9", "state": "supported"},
            {"name": "1.31.0", "state": "beta"},
        )
        order = (
            SortSpec(field="state", kind=SortKind.RANK, ranking={"supported": 0, "preview": 1, "deprecated": 2}),
            SortSpec(field="name", descending=True, kind=SortKind.VERSION),
        )

        items = CatalogResolver().resolve(catalog, sort_spec=order, cardinality=ALL)

        assert names(items) == ["1.28.9", "1.28.5", "1.30.1", "1.29.3", "1.31.0"]

    def test_input_is_not_mutated(self, machine_types):
        before = list(machine_types)

        CatalogResolver().resolve(machine_types, sort_spec=SortSpec(field="name"), cardinality=ALL)

        assert machine_types == before


@pytest.mark.unit
class TestFailures:
    def test_invalid_filter_fails_before_any_fetch(self):
        fetch = Mock()

        with pytest.raises(InvalidFilterError):
            CatalogResolver().resolve_catalog(fetch, ExpressionFilter(expression="vcpus == 2 ||"))

        fetch.assert_not_called()

    def test_fetch_failure_propagates(self, make_fetcher):
        fetcher = make_fetcher([Page(items=[{"name": "a"}] * 25)], fail_at=2)

        with pytest.raises(FetchFailedError) as exc_info:
            CatalogResolver().resolve_catalog(fetcher, cardinality=ALL)

        assert exc_info.value.page_index == 2

    def test_expand_runs_after_paging(self, make_fetcher):
        fetcher = make_fetcher([Page(items=[{"name": "debian", "versions": [{"version": "11"}, {"version": "12"}]}])])

        def versions(items):
            return [v.as_python() for item in items for v in item.lookup("versions").value]

        items = CatalogResolver().resolve_catalog(
            fetcher, ExpressionFilter(expression="version == '12'"), expand=versions
        )

        assert items[0].lookup("version").value == "12"

    def test_malformed_payload_fails_the_fetch(self, make_fetcher):
        fetcher = make_fetcher([Page(items=[{"name": "flatcar", "versions": ["1.0.0"]}])])

        def versions(items):
            return [{"name": "flatcar", **entry} for item in items for entry in item.to_dict()["versions"]]

        with pytest.raises(FetchFailedError) as exc_info:
            CatalogResolver().resolve_catalog(fetcher, cardinality=ALL, expand=versions)

        assert exc_info.value.page_index is None
        assert exc_info.value.message.startswith("Catalog payload is malformed")


@pytest.mark.unit
class TestOutcome:
    @pytest.mark.parametrize(
        "expression,kind",
        [
            ("vcpus == 2 && ram == 2048", OutcomeKind.RESOLVED),
            ("vcpus == 64", OutcomeKind.NOT_FOUND),
            ("vcpus == 2", OutcomeKind.AMBIGUOUS),
            ("vcpus === 2", OutcomeKind.INVALID_FILTER),
        ],
    )
    def test_outcome_kinds(self, make_fetcher, machine_types, expression, kind):
        fetcher = make_fetcher([Page(items=machine_types)])

        outcome = CatalogResolver().outcome(fetcher, ExpressionFilter(expression=expression))

        assert outcome.kind is kind

    def test_fetch_failed_outcome(self, make_fetcher):
        outcome = CatalogResolver().outcome(make_fetcher([], fail_at=1))

        assert outcome.kind is OutcomeKind.FETCH_FAILED
        assert outcome.severity is Severity.ERROR

    def test_not_found_warning_policy(self, make_fetcher):
        outcome = CatalogResolver().outcome(make_fetcher([Page()]), not_found_policy=NotFoundPolicy.WARNING)

        assert outcome.kind is OutcomeKind.NOT_FOUND
        assert outcome.severity is Severity.WARNING


@pytest.mark.unit
def test_summarize():
    assert summarize(["a", "b"], 5) == "a, b"
    assert summarize(["a", "b", "c"], 2) == "a, b and 1 more"
