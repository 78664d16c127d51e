import pytest

from gallery.models import Pagination
from gallery.query import ALL_CATEGORIES, QueryState


@pytest.fixture
def query():
    q = QueryState([50, 25, 100])
    q.update(Pagination(page=1, limit=50, total=500, totalPages=10))
    return q


def test_defaults():
    q = QueryState([50, 25, 100])
    assert q.page == 1
    assert q.page_size == 50
    assert q.category == ALL_CATEGORIES
    assert q.params() == {"page": 1, "limit": 50}


def test_search_and_category_reset_page(query):
    query.go_to_page(4)
    query.set_search("cat")
    assert query.page == 1

    query.go_to_page(4)
    query.set_category("Nature")
    assert query.page == 1
    assert query.params() == {"page": 1, "limit": 50, "category": "Nature", "search": "cat"}


def test_page_change_keeps_filters(query):
    query.set_category("Nature")
    query.set_search("cat")
    assert query.go_to_page(3)
    assert query.category == "Nature"
    assert query.search == "cat"


def test_page_size_must_be_allowed(query):
    with pytest.raises(ValueError):
        query.set_page_size(33)
    query.go_to_page(3)
    query.set_page_size(100)
    assert query.page == 1
    assert query.page_size == 100


def test_out_of_range_pages_are_ignored(query):
    assert not query.go_to_page(0)
    assert not query.go_to_page(11)
    assert query.page == 1


def test_boundaries(query):
    assert not query.has_previous
    assert query.has_next
    assert not query.previous_page()
    query.go_to_page(10)
    assert query.has_previous
    assert not query.has_next
    assert not query.next_page()


@pytest.mark.parametrize("page, window", [
    (1, [1, 2, 3]),
    (2, [1, 2, 3, 4]),
    (5, [3, 4, 5, 6, 7]),
    (10, [8, 9, 10]),
])
def test_page_window(query, page, window):
    query.go_to_page(page)
    assert query.page_window() == window


def test_page_window_with_few_pages():
    q = QueryState([50])
    q.update(Pagination(page=1, limit=50, total=60, totalPages=2))
    assert q.page_window() == [1, 2]


def test_summary(query):
    query.go_to_page(10)
    assert query.summary() == "Showing 451-500 of 500 images"
    empty = QueryState([50])
    assert empty.summary() == "Showing 0 of 0 images"
