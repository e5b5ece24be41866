"""Pure data pipeline: raw rows -> filtered -> sorted -> grouped -> paged.

The pipeline owns no state beyond a memo of its last inputs. Everything it
returns is derived from the arguments, so the engine can re-run it after any
mutation and hand the result straight to a renderer.

Usage:
    from tabletify.pipeline import compute_view
    from tabletify.models import Column, FilterState, GroupState, PageState, SortState

    result = compute_view(
        rows,
        [Column(key="name"), Column(key="age")],
        filters=FilterState(search="ali"),
        sort=SortState(key="age", direction="desc"),
        group=GroupState(),
        page=PageState(items_per_page=25),
    )
    result.paged_rows  # rows on the current page
"""

from __future__ import annotations

import locale
import math
import re

from collections.abc import Callable, Collection, Mapping, Sequence
from datetime import date, datetime, time
from functools import cmp_to_key
from numbers import Real
from typing import Any

from .exceptions import ConfigurationError, OutOfRangeRequest
from .log import debug, warn
from .models import (
    Column,
    FilterState,
    Group,
    GroupState,
    Key,
    PageState,
    PipelineResult,
    SortState,
)


KeyFunc = Callable[[Any, int], Key]

_NUMERIC_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
_CHUNK_RE = re.compile(r"(\d+)")


# --- Row access helpers ---


def get_field(row: Any, key: str) -> Any:
    """Read ``key`` from a mapping row or an attribute row."""
    if isinstance(row, Mapping):
        return row.get(key)
    return getattr(row, key, None)


def default_key(row: Any, index: int) -> Key:
    """Key rows by their ``id`` field, falling back to position."""
    value = get_field(row, "id")
    if isinstance(value, (str, int)) and not isinstance(value, bool):
        return value
    return index


def stringify(value: Any) -> str:
    """String form used for filter membership and group keys."""
    if value is None:
        return ""
    return str(value)


def cell_text(row: Any, column: Column) -> str:
    """Rendered text of a cell, as searched by the global search box."""
    value = get_field(row, column.key)
    if column.formatter is not None:
        try:
            return str(column.formatter(value, row))
        except Exception as exc:  # pylint: disable=broad-exception-caught
            warn(f"Formatter for column '{column.key}' failed: {exc}")
    return stringify(value)


def clamp(value: int, low: int, high: int, label: str = "index") -> int:
    """Clamp ``value`` into ``[low, high]``, logging when it had to move."""
    if low <= value <= high:
        return value
    clamped = min(max(value, low), high)
    debug(str(OutOfRangeRequest(f"Clamped {label} to {clamped}", value=value, bounds=(low, high))))
    return clamped


def build_key_index(rows: Sequence[Any], get_key: KeyFunc) -> dict[int, Key]:
    """Map ``id(row)`` to its key.

    Keys must be unique; duplicates are reported but left to the caller.
    """
    index: dict[int, Key] = {}
    seen: set[Key] = set()
    for position, row in enumerate(rows):
        key = get_key(row, position)
        if key in seen:
            warn(f"Duplicate row key {key!r}; row identity is undefined for duplicates")
        seen.add(key)
        index[id(row)] = key
    return index


# --- Input normalization ---


def normalize_rows(data: Any) -> list[Any]:
    """Convert various data formats to a list of rows.

    Handles:
    - DataFrame-like objects exposing ``to_dict(orient="records")``
    - list of dicts or objects: [{'a': 1}, {'a': 2}]
    - dict of lists: {'a': [1, 2], 'b': [3, 4]}
    - single dict: {'a': 1, 'b': 2}
    """
    if data is None:
        return []
    try:
        # DataFrame (duck typing)
        if hasattr(data, "to_dict") and hasattr(data, "columns"):
            return list(data.to_dict(orient="records"))
        if isinstance(data, Mapping):
            first_value = next(iter(data.values()), None)
            if isinstance(first_value, (list, tuple)):
                columns = list(data.keys())
                num_rows = len(first_value)
                return [{col: data[col][i] for col in columns} for i in range(num_rows)]
            return [dict(data)]
        return list(data)
    except (ValueError, TypeError, IndexError) as e:
        warn(f"Failed to convert data: {e}")
        return []


def infer_columns(rows: Sequence[Any]) -> list[Column]:
    """Build default column definitions from the first mapping row."""
    if not rows or not isinstance(rows[0], Mapping):
        return []
    return [Column(key=str(key), label=str(key)) for key in rows[0]]


# --- Comparison ---


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, Real):
        number = float(value)
        return number if math.isfinite(number) else None
    if isinstance(value, str) and _NUMERIC_RE.match(value.strip()):
        return float(value)
    return None


def _as_date(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


def _text_compare(a: str, b: str) -> int:
    """Locale-aware, case-insensitive comparison with natural digit runs."""
    left = _CHUNK_RE.split(a.casefold())
    right = _CHUNK_RE.split(b.casefold())
    for x, y in zip(left, right, strict=False):
        if x == y:
            continue
        if x.isdigit() and y.isdigit():
            return (int(x) > int(y)) - (int(x) < int(y))
        result = locale.strcoll(x, y)
        if result:
            return 1 if result > 0 else -1
    return (len(left) > len(right)) - (len(left) < len(right))


def compare_values(a: Any, b: Any) -> int:
    """Compare two non-null cell values.

    Numeric if both are numeric, chronological if both parse as dates,
    otherwise a locale-aware string comparison.

    Returns
    -------
    int
        Negative, zero or positive like ``cmp``.
    """
    num_a, num_b = _as_number(a), _as_number(b)
    if num_a is not None and num_b is not None:
        return (num_a > num_b) - (num_a < num_b)

    date_a, date_b = _as_date(a), _as_date(b)
    if date_a is not None and date_b is not None:
        try:
            return (date_a > date_b) - (date_a < date_b)
        except TypeError:
            pass  # naive vs aware, compare as text

    return _text_compare(str(a), str(b))


def sort_rows(rows: Sequence[Any], sort: SortState) -> list[Any]:
    """Stable sort by the column's raw value.

    Nulls sort last in both directions and ties keep original order.
    """
    if sort.key is None:
        return list(rows)
    key = sort.key
    sign = -1 if sort.direction == "desc" else 1

    def _cmp(left: tuple[int, Any], right: tuple[int, Any]) -> int:
        a = get_field(left[1], key)
        b = get_field(right[1], key)
        if a is None or b is None:
            result = (a is None) - (b is None)
        else:
            result = sign * compare_values(a, b)
        return result or (left[0] - right[0])

    return [row for _, row in sorted(enumerate(rows), key=cmp_to_key(_cmp))]


# --- Pipeline stages ---


def require_column(columns: Sequence[Column], key: str, what: str = "Request") -> Column:
    """Return the column named ``key``.

    Raises
    ------
    ConfigurationError
        If no column has that key.
    """
    for column in columns:
        if column.key == key:
            return column
    raise ConfigurationError(f"{what} references unknown column", column_key=key)


def _known_key(columns: Sequence[Column], key: str, what: str) -> bool:
    try:
        require_column(columns, key, what)
    except ConfigurationError as exc:
        warn(str(exc))
        return False
    return True


def filter_rows(
    rows: Sequence[Any],
    columns: Sequence[Column],
    filters: FilterState,
    visible_keys: Collection[str] | None = None,
) -> list[Any]:
    """Apply per-field set membership AND the global search.

    The search matches when any visible column's rendered text contains it,
    case-insensitively.
    """
    active = {
        field: values
        for field, values in filters.active_fields().items()
        if _known_key(columns, field, "Filter")
    }
    needle = filters.search.strip().casefold()
    searched = [
        column for column in columns if visible_keys is None or column.key in visible_keys
    ]

    result = []
    for row in rows:
        if any(stringify(get_field(row, field)) not in values for field, values in active.items()):
            continue
        if needle and not any(needle in cell_text(row, column).casefold() for column in searched):
            continue
        result.append(row)
    return result


def group_rows(rows: Sequence[Any], group: GroupState) -> list[Group]:
    """Partition sorted rows by stringified group value in first-seen order."""
    if group.key is None:
        return []
    buckets: dict[str, list[Any]] = {}
    for row in rows:
        buckets.setdefault(stringify(get_field(row, group.key)), []).append(row)
    return [
        Group(key=key, rows=members, expanded=group.is_expanded(key))
        for key, members in buckets.items()
    ]


def paginate(item_count: int, page: PageState) -> PageState:
    """Recompute totals; a current page that no longer exists resets to 1."""
    total_pages = max(1, math.ceil(item_count / page.items_per_page))
    current = page.current_page
    if not 1 <= current <= total_pages:
        debug(f"Page {current} no longer exists (1..{total_pages}), back to page 1")
        current = 1
    return PageState(
        items_per_page=page.items_per_page,
        current_page=current,
        total_pages=total_pages,
        item_count=item_count,
    )


def compute_view(
    rows: Sequence[Any],
    columns: Sequence[Column],
    *,
    filters: FilterState,
    sort: SortState,
    group: GroupState,
    page: PageState,
    visible_keys: Collection[str] | None = None,
) -> PipelineResult:
    """Run filter, sort, group and paginate over ``rows``.

    When grouped, pagination slices the list of groups: each page holds up
    to ``items_per_page`` whole groups.

    Parameters
    ----------
    rows : Sequence
        Canonical rows. Never mutated.
    columns : Sequence of Column
        All column definitions; unknown keys in requests are ignored.
    filters : FilterState
        Per-field filters and search text.
    sort : SortState
        Active sort.
    group : GroupState
        Group-by field and expanded keys.
    page : PageState
        Requested page and page size.
    visible_keys : Collection of str, optional
        Columns searched by the global search. All columns when omitted.

    Returns
    -------
    PipelineResult
        Derived view with a clamped page.
    """
    filtered = filter_rows(rows, columns, filters, visible_keys)

    if sort.key is not None and not _known_key(columns, sort.key, "Sort"):
        sort = SortState()
    ordered = sort_rows(filtered, sort)

    if group.key is not None and not _known_key(columns, group.key, "Group"):
        group = GroupState()

    if group.key is None:
        page_state = paginate(len(ordered), page)
        start = (page_state.current_page - 1) * page_state.items_per_page
        return PipelineResult(
            filtered=filtered,
            sorted=ordered,
            paged_rows=ordered[start : start + page_state.items_per_page],
            page=page_state,
        )

    groups = group_rows(ordered, group)
    page_state = paginate(len(groups), page)
    start = (page_state.current_page - 1) * page_state.items_per_page
    return PipelineResult(
        filtered=filtered,
        sorted=ordered,
        groups=groups,
        paged_groups=groups[start : start + page_state.items_per_page],
        page=page_state,
    )


class DataPipeline:
    """Memoizing wrapper around :func:`compute_view`.

    Identical inputs (same row and column sequences, equal state models)
    return the previous result object.
    """

    def __init__(self) -> None:
        self._last_inputs: tuple[Any, ...] | None = None
        self._last_result: PipelineResult | None = None

    def compute(
        self,
        rows: Sequence[Any],
        columns: Sequence[Column],
        *,
        filters: FilterState,
        sort: SortState,
        group: GroupState,
        page: PageState,
        visible_keys: Collection[str] | None = None,
    ) -> PipelineResult:
        """Compute the view, reusing the memo when inputs are unchanged."""
        visible = frozenset(visible_keys) if visible_keys is not None else None
        inputs = (filters, sort, group, page, visible)
        if (
            self._last_result is not None
            and self._last_inputs is not None
            and self._last_inputs[0] is rows
            and self._last_inputs[1] is columns
            and self._last_inputs[2:] == inputs
        ):
            return self._last_result

        result = compute_view(
            rows,
            columns,
            filters=filters,
            sort=sort,
            group=group,
            page=page,
            visible_keys=visible,
        )
        self._last_inputs = (rows, columns, *inputs)
        self._last_result = result
        return result

    def invalidate(self) -> None:
        """Forget the memo."""
        self._last_inputs = None
        self._last_result = None
