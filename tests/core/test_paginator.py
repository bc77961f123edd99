import pytest

from canarydash.core import paginator
from canarydash.core.models import DashboardState


@pytest.fixture
def forty_five(make_match):
    return tuple(make_match(matched_rule=f"rule-{i}") for i in range(45))


@pytest.mark.unit
def test_last_partial_page(forty_five):
    page = paginator.paginate(forty_five, current_page=2, page_size=20)

    assert len(page.rows) == 5
    assert page.rows[0].matched_rule == "rule-40"
    assert page.has_next is False
    assert page.has_previous is True
    assert page.total == 45


@pytest.mark.unit
def test_first_page(forty_five):
    page = paginator.paginate(forty_five, current_page=0, page_size=20)

    assert len(page.rows) == 20
    assert page.has_previous is False
    assert page.has_next is True


@pytest.mark.unit
def test_exact_multiple_has_no_next_page(make_match):
    rows = tuple(make_match() for _ in range(40))
    page = paginator.paginate(rows, current_page=1, page_size=20)

    assert len(page.rows) == 20
    assert page.has_next is False


@pytest.mark.unit
def test_empty_view_is_empty_page():
    page = paginator.paginate((), current_page=0, page_size=20)

    assert page.is_empty
    assert page.has_previous is False
    assert page.has_next is False


@pytest.mark.unit
def test_page_navigation_stays_in_bounds(forty_five):
    state = DashboardState(filtered_matches=forty_five, page_size=20)

    assert paginator.previous_page(state) is False
    assert state.current_page == 0

    assert paginator.next_page(state) is True
    assert paginator.next_page(state) is True
    assert state.current_page == 2
    assert paginator.next_page(state) is False
    assert state.current_page == 2

    assert paginator.previous_page(state) is True
    assert state.current_page == 1
    assert len(paginator.current_page(state).rows) == 20
