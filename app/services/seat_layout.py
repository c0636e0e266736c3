from numbers import Number
from typing import Any, Optional, Set


def seat_label(cell: Any) -> Optional[str]:
    """String id of a seat cell, or None when the cell is an aisle."""
    if isinstance(cell, bool):
        return None
    if isinstance(cell, str):
        return cell if cell else None
    if isinstance(cell, Number):
        try:
            if not cell > 0:
                return None
        except TypeError:
            return None
        # JSON round-trips may turn 3 into 3.0; both name seat "3"
        if isinstance(cell, float) and cell.is_integer():
            return str(int(cell))
        return str(cell)
    return None


def valid_seat_ids(grid: Any) -> Set[str]:
    """
    Collect the seat ids of a hall's seating grid.

    Rows are walked in order; strings and strictly positive numbers are seats,
    zero / empty / null cells are aisles. A grid that is not a list of lists
    yields no seats at all.
    """
    seats: Set[str] = set()
    if not isinstance(grid, (list, tuple)):
        return seats
    for row in grid:
        if not isinstance(row, (list, tuple)):
            return set()
        for cell in row:
            label = seat_label(cell)
            if label is not None:
                seats.add(label)
    return seats


def seat_capacity(grid: Any) -> int:
    return len(valid_seat_ids(grid))
