"""
Sparse Heatmap Codec

Encodes and decodes the interaction heatmap, a conceptual rows x columns grid
of activity, as a bounded top-K sample stored in parallel arrays:

    indexes[i] -> linear cell index (row * columns + column)
    values[i]  -> accumulated intensity for that cell
    counts[i]  -> number of visits that contributed (optional)

Invariants:
- rows > 0 and columns > 0
- 0 <= index < rows * columns for every listed index
- indexes, values and counts (when present) have equal lengths
- Unlisted cells are "not sampled". Nothing here ever zero-fills them,
  because a consumer must be able to tell "not sampled" from "confirmed zero".

Structural violations raise MalformedHeatmapError; they indicate a caller bug.

Merging:
    merge_snapshot() folds one visit's snapshot into an accumulated heatmap,
    summing overlapping cells and keeping at most max_cells of them ranked by
    a composite relevance score:

        score = 0.7 * value / max_value + 0.3 * (value / count) / max_ratio

    The first term favours hot cells, the second favours cells that are hot
    per visit rather than merely visited often.

Dependencies:
    - numpy: vectorised index arithmetic and stable multi-key ranking
"""

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np

from portfolio_analytics.core.errors import AnalyticsError, MalformedHeatmapError
from portfolio_analytics.models import HeatmapCell, HeatmapSnapshot, SparseHeatmap

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

# Composite relevance weights used when a merge exceeds max_cells
VALUE_WEIGHT: float = 0.7
RATIO_WEIGHT: float = 0.3


# =============================================================================
# Validation
# =============================================================================


def _validate_grid(rows: int, columns: int) -> None:
    if rows <= 0 or columns <= 0:
        raise MalformedHeatmapError(
            f"Heatmap grid must be positive, got rows={rows}, columns={columns}"
        )


def _as_index_array(indexes: Sequence) -> np.ndarray:
    """
    Convert linear indexes to int64, rejecting values with a fractional part
    instead of truncating them.
    """
    raw = np.asarray(indexes)
    if raw.size == 0:
        return np.zeros(0, dtype=np.int64)
    if np.issubdtype(raw.dtype, np.integer):
        return raw.astype(np.int64)

    try:
        numeric = raw.astype(np.float64)
    except (TypeError, ValueError) as exc:
        raise MalformedHeatmapError(f"Heatmap indexes must be integers: {exc}") from exc

    whole = np.isfinite(numeric) & (numeric == np.floor(numeric))
    if not whole.all():
        bad = raw[~whole][0]
        raise MalformedHeatmapError(f"Heatmap index {bad!r} is not an integer")
    return numeric.astype(np.int64)


def _validate_indexes(indexes: np.ndarray, rows: int, columns: int) -> None:
    if indexes.size == 0:
        return
    cell_count = rows * columns
    out_of_range = (indexes < 0) | (indexes >= cell_count)
    if out_of_range.any():
        bad = int(indexes[out_of_range][0])
        raise MalformedHeatmapError(
            f"Heatmap index {bad} outside [0, {cell_count}) "
            f"for a {rows}x{columns} grid"
        )


def _rank_descending(keys: np.ndarray, indexes: np.ndarray) -> np.ndarray:
    """
    Order positions by descending key, breaking ties by lowest linear index.
    """
    # np.lexsort sorts by the last key first
    return np.lexsort((indexes, -keys))


# =============================================================================
# Decode
# =============================================================================


def decode(
    rows: int,
    columns: int,
    indexes: Sequence[int],
    values: Sequence[float],
    counts: Optional[Sequence[int]] = None
) -> List[HeatmapCell]:
    """
    Decode parallel sparse arrays into grid cells.

    Args:
        rows: Grid height; must be positive.
        columns: Grid width; must be positive.
        indexes: Linear cell indexes (row * columns + column).
        values: Intensity per listed index.
        counts: Optional visit count per listed index.

    Returns:
        One HeatmapCell per listed index, in input order. Cells that were not
        listed are not returned.

    Raises:
        MalformedHeatmapError: If the grid is not positive, the arrays differ
            in length, or any index is fractional or outside
            [0, rows * columns).

    Example:
        >>> cell = decode(137, 64, [5401], [12.0])[0]
        >>> (cell.row, cell.column)
        (84, 25)
    """
    _validate_grid(rows, columns)

    if len(values) != len(indexes):
        raise MalformedHeatmapError(
            f"indexes ({len(indexes)}) and values ({len(values)}) differ in length"
        )
    if counts is not None and len(counts) != len(indexes):
        raise MalformedHeatmapError(
            f"indexes ({len(indexes)}) and counts ({len(counts)}) differ in length"
        )

    index_array = _as_index_array(indexes)
    _validate_indexes(index_array, rows, columns)

    row_array, column_array = np.divmod(index_array, columns)

    return [
        HeatmapCell(
            row=int(row_array[i]),
            column=int(column_array[i]),
            value=float(values[i]),
            count=int(counts[i]) if counts is not None else None,
        )
        for i in range(index_array.size)
    ]


def decode_heatmap(heatmap: SparseHeatmap) -> List[HeatmapCell]:
    """
    Decode a SparseHeatmap model. See decode().
    """
    return decode(
        heatmap.rows,
        heatmap.columns,
        heatmap.indexes,
        heatmap.values,
        heatmap.counts,
    )


# =============================================================================
# Encode
# =============================================================================


def encode(
    cells: Sequence[HeatmapCell],
    rows: int,
    columns: int,
    k: int
) -> SparseHeatmap:
    """
    Encode grid cells as a top-k sparse heatmap.

    Selects the k cells with the highest value, breaking ties by the lowest
    linear index so the output is deterministic, and emits them as parallel
    arrays sorted by descending value.

    Counts are emitted only when every selected cell carries one; otherwise
    ``counts`` is None.

    Args:
        cells: Candidate cells; each (row, column) must be inside the grid and
            appear at most once.
        rows: Grid height; must be positive.
        columns: Grid width; must be positive.
        k: Maximum number of cells to keep; must not be negative.

    Returns:
        SparseHeatmap with at most k listed cells.

    Raises:
        MalformedHeatmapError: On a non-positive grid, negative k, a cell
            outside the grid, or two cells at the same position.
    """
    _validate_grid(rows, columns)
    if k < 0:
        raise MalformedHeatmapError(f"k must not be negative, got {k}")

    for cell in cells:
        if cell.row >= rows or cell.column >= columns:
            raise MalformedHeatmapError(
                f"Cell ({cell.row}, {cell.column}) outside a {rows}x{columns} grid"
            )

    index_array = np.array(
        [cell.row * columns + cell.column for cell in cells],
        dtype=np.int64,
    )
    if np.unique(index_array).size != index_array.size:
        raise MalformedHeatmapError("Duplicate cell positions in heatmap input")

    value_array = np.array([cell.value for cell in cells], dtype=np.float64)
    order = _rank_descending(value_array, index_array)[:k]
    selected = [cells[i] for i in order]

    counts: Optional[List[int]] = None
    if selected and all(cell.count is not None for cell in selected):
        counts = [int(cell.count) for cell in selected]

    return SparseHeatmap(
        rows=rows,
        columns=columns,
        indexes=[int(index_array[i]) for i in order],
        values=[float(cell.value) for cell in selected],
        counts=counts,
    )


# =============================================================================
# Snapshot Merge
# =============================================================================


def _relevance_scores(values: np.ndarray, counts: np.ndarray) -> np.ndarray:
    """
    Composite relevance score per cell; see the module docstring.

    Both normalisers are floored at 1 so sparse, low-intensity heatmaps are
    not inflated to full scale.
    """
    ratios = np.where(counts > 0, values / np.maximum(counts, 1), values)
    max_value = max(float(values.max()), 1.0)
    max_ratio = max(float(ratios.max()), 1.0)
    return VALUE_WEIGHT * (values / max_value) + RATIO_WEIGHT * (ratios / max_ratio)


def merge_snapshot(
    existing: Optional[SparseHeatmap],
    snapshot: HeatmapSnapshot,
    max_cells: int
) -> SparseHeatmap:
    """
    Fold one visit's heatmap snapshot into the accumulated heatmap.

    Overlapping cells have their values summed and their count increased by
    one; cells new to the heatmap start with a count of one. Existing cells
    without counts are treated as seen once. The snapshot's grid shape and
    version replace the existing ones.

    When more than max_cells cells result, only the max_cells most relevant
    are kept. The output is ordered by descending relevance score, ties by
    lowest index.

    Args:
        existing: Accumulated heatmap, or None for the first visit of the day.
        snapshot: The new visit's sample.
        max_cells: Upper bound on retained cells; must be positive.

    Returns:
        The merged SparseHeatmap, always carrying counts.

    Raises:
        MalformedHeatmapError: If either input is structurally invalid or an
            accumulated index does not fit the snapshot's grid.
        AnalyticsError: If max_cells is not positive.
    """
    if max_cells <= 0:
        logger.warning("Rejected heatmap merge with max_cells=%d", max_cells)
        raise AnalyticsError(f"max_cells must be positive, got {max_cells}")

    # Validates the snapshot arrays and grid
    decode(snapshot.rows, snapshot.columns, snapshot.indexes, snapshot.values)

    combined: Dict[int, List[float]] = {}

    if existing is not None:
        decode_heatmap(existing)
        existing_counts = existing.counts or [1] * len(existing.indexes)
        for index, value, count in zip(existing.indexes, existing.values, existing_counts):
            combined[int(index)] = [float(value), int(count)]

    for index, value in zip(snapshot.indexes, snapshot.values):
        cell = combined.get(int(index))
        if cell is None:
            combined[int(index)] = [float(value), 1]
        else:
            cell[0] += float(value)
            cell[1] += 1

    index_array = np.fromiter(combined.keys(), dtype=np.int64, count=len(combined))
    _validate_indexes(index_array, snapshot.rows, snapshot.columns)

    if index_array.size == 0:
        return SparseHeatmap(
            version=snapshot.version,
            rows=snapshot.rows,
            columns=snapshot.columns,
            counts=[],
        )

    value_array = np.array([combined[i][0] for i in index_array], dtype=np.float64)
    count_array = np.array([combined[i][1] for i in index_array], dtype=np.int64)

    scores = _relevance_scores(value_array, count_array)
    order = _rank_descending(scores, index_array)[:max_cells]

    logger.debug(
        "Merged heatmap snapshot: %d existing, %d new, %d combined, %d kept",
        len(existing.indexes) if existing is not None else 0,
        len(snapshot.indexes),
        index_array.size,
        order.size,
    )

    return SparseHeatmap(
        version=snapshot.version if snapshot.version is not None else (
            existing.version if existing is not None else None
        ),
        rows=snapshot.rows,
        columns=snapshot.columns,
        indexes=[int(index_array[i]) for i in order],
        values=[float(value_array[i]) for i in order],
        counts=[int(count_array[i]) for i in order],
    )
