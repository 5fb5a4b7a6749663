"""Query Builder — filter normalisation, defaults and rejection of malformed input.

Tests cover:
    - Defaults: OPEN only, created_at desc, default limit, offset 0
    - Status parsing (case-insensitive, ALL lifts the predicate, unknown rejected)
    - ISO-8601 parsing with Z / offsets / naive values, malformed dates rejected
    - Empty ranges (after >= before) rejected
    - Sort field/order parsing incl. camelCase keys
    - Limit/offset bounds
    - LIKE escaping
"""

from datetime import datetime, timedelta, timezone

import pytest

from togeeat.core.domain_types import MatchingStatus, SortField, SortOrder, UserId
from togeeat.core.errors import ValidationError
from togeeat.core.query_builder import (
    OPEN_ONLY, MatchingFilter, build_query, escape_like, parse_timestamp,
)


def _build(**kwargs):
    owner_id = kwargs.pop("owner_id", None)
    return build_query(
        MatchingFilter(**kwargs), default_limit=10, max_limit=100,
        owner_id=owner_id,
    )


def test_empty_filter_defaults():
    query = _build()
    assert query.limit == 10
    assert query.offset == 0
    assert query.statuses == OPEN_ONLY
    assert query.sort_field == SortField.CREATED_AT
    assert query.sort_order == SortOrder.DESC
    assert query.owner_name is None
    assert query.match_before is None


def test_owner_id_is_carried_through():
    assert _build(owner_id=UserId(4)).owner_id == 4


def test_default_statuses_can_be_lifted():
    query = build_query(
        MatchingFilter(), default_limit=10, max_limit=100, default_statuses=None,
    )
    assert query.statuses is None


def test_status_is_case_insensitive():
    assert _build(status="closed").statuses == frozenset({MatchingStatus.CLOSED})


def test_status_all_removes_status_predicate():
    assert _build(status="all").statuses is None


def test_blank_status_uses_default():
    assert _build(status="  ").statuses == OPEN_ONLY


def test_unknown_status_is_rejected():
    with pytest.raises(ValidationError) as exc:
        _build(status="PENDING")
    assert exc.value.field == "status"


def test_z_suffix_parses_as_utc():
    query = _build(match_after="2026-10-20T09:00:00.000Z")
    assert query.match_after == datetime(2026, 10, 20, 9, 0, tzinfo=timezone.utc)


def test_offset_timestamps_are_normalised_to_utc():
    query = _build(created_before="2026-10-20T18:00:00+09:00")
    assert query.created_before == datetime(2026, 10, 20, 9, 0, tzinfo=timezone.utc)


def test_naive_timestamp_is_taken_as_utc():
    assert parse_timestamp("2026-10-20T09:00:00", "x") == datetime(
        2026, 10, 20, 9, 0, tzinfo=timezone.utc,
    )


def test_datetime_values_are_accepted():
    value = datetime(2026, 1, 1, tzinfo=timezone(timedelta(hours=-5)))
    assert _build(created_after=value).created_after == datetime(
        2026, 1, 1, 5, 0, tzinfo=timezone.utc,
    )


@pytest.mark.parametrize("field", [
    "match_before", "match_after", "created_before", "created_after",
])
def test_malformed_dates_are_rejected(field):
    with pytest.raises(ValidationError) as exc:
        _build(**{field: "next tuesday"})
    assert exc.value.field == field


def test_empty_date_string_means_no_bound():
    assert _build(match_before="").match_before is None


def test_empty_range_is_rejected():
    with pytest.raises(ValidationError):
        _build(
            match_after="2026-10-20T00:00:00Z",
            match_before="2026-10-20T00:00:00Z",
        )


def test_inverted_created_range_is_rejected():
    with pytest.raises(ValidationError):
        _build(
            created_after="2026-10-21T00:00:00Z",
            created_before="2026-10-20T00:00:00Z",
        )


def test_sort_accepts_camel_case_field():
    query = _build(sort_by="matchingDate", sort_order="ASC")
    assert query.sort_field == SortField.MATCHING_DATE
    assert query.sort_order == SortOrder.ASC


def test_sort_accepts_snake_case_field():
    assert _build(sort_by="created_at").sort_field == SortField.CREATED_AT


def test_unknown_sort_field_is_rejected():
    with pytest.raises(ValidationError):
        _build(sort_by="ownerId")


def test_unknown_sort_order_is_rejected():
    with pytest.raises(ValidationError):
        _build(sort_order="sideways")


@pytest.mark.parametrize("limit", [0, -1, 101])
def test_limit_out_of_bounds_is_rejected(limit):
    with pytest.raises(ValidationError):
        _build(limit=limit)


def test_limit_at_max_is_accepted():
    assert _build(limit=100).limit == 100


def test_negative_offset_is_rejected():
    with pytest.raises(ValidationError):
        _build(offset=-1)


def test_owner_name_is_trimmed_and_blank_dropped():
    assert _build(owner_name="  bob ").owner_name == "bob"
    assert _build(owner_name="   ").owner_name is None


def test_escape_like_escapes_wildcards():
    assert escape_like("50%_off\\") == "50\\%\\_off\\\\"
