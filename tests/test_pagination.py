import pytest

from blogbuild.errors import ConfigurationError
from blogbuild.pagination import paginate


def test_five_posts_two_per_page():
    plan = paginate(list("abcde"), 2)
    assert plan.total_pages == 3
    assert [page.posts for page in plan.pages] == [("a", "b"), ("c", "d"), ("e",)]
    assert [page.number for page in plan.pages] == [1, 2, 3]


@pytest.mark.parametrize("size", [1, 2, 3, 10])
def test_empty_collection_has_one_empty_page(size):
    plan = paginate([], size)
    assert plan.total_pages == 1
    assert len(plan.pages) == 1
    assert plan.pages[0].posts == ()
    assert plan.pages[0].is_first and plan.pages[0].is_last


@pytest.mark.parametrize("count", [1, 2, 5, 7, 10, 11])
@pytest.mark.parametrize("size", [1, 2, 3, 5])
def test_pages_partition_the_input(count, size):
    posts = list(range(count))
    plan = paginate(posts, size)
    flattened = [post for page in plan.pages for post in page.posts]
    assert flattened == posts
    assert sum(len(page.posts) for page in plan.pages) == count
    assert all(page.posts for page in plan.pages)
    assert all(len(page.posts) == size for page in plan.pages[:-1])


def test_page_flags_and_neighbors():
    plan = paginate(list(range(6)), 2)
    first, middle, last = plan.pages
    assert first.is_first and not first.is_last
    assert first.previous_number is None and first.next_number == 2
    assert middle.previous_number == 1 and middle.next_number == 3
    assert last.is_last and last.next_number is None


@pytest.mark.parametrize("size", [0, -1, 1.5, "2", True])
def test_invalid_page_size_fails_fast(size):
    with pytest.raises(ConfigurationError):
        paginate([1, 2, 3], size)


def test_page_lookup_out_of_range():
    plan = paginate(list(range(3)), 2)
    assert plan.page(2).posts == (2,)
    with pytest.raises(IndexError):
        plan.page(3)
    with pytest.raises(IndexError):
        plan.page(0)
