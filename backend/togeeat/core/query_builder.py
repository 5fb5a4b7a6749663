"""Query Builder — turns optional, loosely-typed listing parameters into a typed query.

Invariants:
    - build_query is PURE: no IO; raises ValidationError on any malformed input
    - All datetime bounds are normalised to UTC-aware datetimes
    - *_after bounds are inclusive (>=), *_before bounds are exclusive (<)
    - Status omitted → default_statuses (OPEN only for the public listing)
    - Raw key/value maps never reach the Storage Gateway — only MatchingQuery does

Design Decisions:
    - Two records: MatchingFilter mirrors the wire (strings, all nullable),
      MatchingQuery is what storage consumes (ADR: parse at the boundary)
    - "ALL" status literal lifts the status predicate entirely
    - id is always appended as a tie breaker so offset paging is stable
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from togeeat.core.domain_types import MatchingStatus, SortField, SortOrder, UserId
from togeeat.core.errors import ValidationError

ALL_STATUSES = "ALL"
DEFAULT_SORT_FIELD = SortField.CREATED_AT
DEFAULT_SORT_ORDER = SortOrder.DESC
OPEN_ONLY: frozenset[MatchingStatus] = frozenset({MatchingStatus.OPEN})


@dataclass
class MatchingFilter:
    """Optional listing parameters exactly as received from the caller."""
    owner_name: str | None = None
    match_before: str | datetime | None = None
    match_after: str | datetime | None = None
    created_before: str | datetime | None = None
    created_after: str | datetime | None = None
    status: str | None = None
    limit: int | None = None
    offset: int | None = None
    sort_by: str | None = None
    sort_order: str | None = None


@dataclass(frozen=True)
class MatchingQuery:
    """Normalised predicate, order and page consumed by the Storage Gateway."""
    limit: int
    offset: int = 0
    statuses: frozenset[MatchingStatus] | None = OPEN_ONLY
    owner_id: UserId | None = None
    owner_name: str | None = None
    match_before: datetime | None = None
    match_after: datetime | None = None
    created_before: datetime | None = None
    created_after: datetime | None = None
    sort_field: SortField = DEFAULT_SORT_FIELD
    sort_order: SortOrder = DEFAULT_SORT_ORDER


def parse_timestamp(value: str | datetime | None, field: str) -> datetime | None:
    """Parse an ISO-8601 string (``Z`` suffix accepted) into a UTC-aware datetime."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_utc(value)
    text = value.strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(
            f"invalid date for {field}: {value!r}", field=field,
        ) from None
    return to_utc(parsed)


def to_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_statuses(
    value: str | None, default: frozenset[MatchingStatus] | None,
) -> frozenset[MatchingStatus] | None:
    if value is None or not value.strip():
        return default
    normalised = value.strip().upper()
    if normalised == ALL_STATUSES:
        return None
    try:
        return frozenset({MatchingStatus(normalised)})
    except ValueError:
        raise ValidationError(
            f"invalid status: {value!r}", field="status",
        ) from None


def _parse_sort(sort_by: str | None, sort_order: str | None) -> tuple[SortField, SortOrder]:
    field = DEFAULT_SORT_FIELD
    order = DEFAULT_SORT_ORDER
    if sort_by:
        try:
            field = SortField(_snake_case(sort_by.strip()))
        except ValueError:
            raise ValidationError(
                f"invalid sort field: {sort_by!r}", field="sort_by",
            ) from None
    if sort_order:
        try:
            order = SortOrder(sort_order.strip().lower())
        except ValueError:
            raise ValidationError(
                f"invalid sort order: {sort_order!r}", field="sort_order",
            ) from None
    return field, order


def _snake_case(name: str) -> str:
    """createdAt → created_at, so camelCase sort keys from the wire are accepted."""
    out = []
    for ch in name:
        if ch.isupper():
            out.append("_")
            out.append(ch.lower())
        else:
            out.append(ch)
    return "".join(out).lstrip("_")


def _check_range(lower: datetime | None, upper: datetime | None, name: str) -> None:
    if lower is not None and upper is not None and lower >= upper:
        raise ValidationError(
            f"{name}: 'after' bound must be earlier than 'before' bound",
            field=name,
        )


def build_query(
    flt: MatchingFilter,
    *,
    default_limit: int,
    max_limit: int,
    owner_id: UserId | None = None,
    default_statuses: frozenset[MatchingStatus] | None = OPEN_ONLY,
) -> MatchingQuery:
    """Validate a MatchingFilter and convert it into a MatchingQuery."""
    limit = default_limit if flt.limit is None else flt.limit
    if not 1 <= limit <= max_limit:
        raise ValidationError(
            f"limit must be between 1 and {max_limit}", field="limit",
        )
    offset = 0 if flt.offset is None else flt.offset
    if offset < 0:
        raise ValidationError("offset must be >= 0", field="offset")

    match_before = parse_timestamp(flt.match_before, "match_before")
    match_after = parse_timestamp(flt.match_after, "match_after")
    created_before = parse_timestamp(flt.created_before, "created_before")
    created_after = parse_timestamp(flt.created_after, "created_after")
    _check_range(match_after, match_before, "matching_date")
    _check_range(created_after, created_before, "created_at")

    sort_field, sort_order = _parse_sort(flt.sort_by, flt.sort_order)
    owner_name = flt.owner_name.strip() if flt.owner_name else None

    return MatchingQuery(
        limit=limit,
        offset=offset,
        statuses=parse_statuses(flt.status, default_statuses),
        owner_id=owner_id,
        owner_name=owner_name or None,
        match_before=match_before,
        match_after=match_after,
        created_before=created_before,
        created_after=created_after,
        sort_field=sort_field,
        sort_order=sort_order,
    )


def escape_like(pattern: str) -> str:
    """Escape LIKE wildcards so user input is matched literally (escape char: backslash)."""
    return (
        pattern.replace("\\", "\\\\")
        .replace("%", "\\%")
        .replace("_", "\\_")
    )
