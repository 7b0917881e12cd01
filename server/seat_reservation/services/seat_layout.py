"""Seat layout generation for coach-style trips."""

AISLE = "AISLE"
SEATS_PER_ROW = 4
ROW_LETTERS = ("A", "B", "C", "D")


def generate_seat_layout(capacity: int, rear_bench: int = 0) -> list[str]:
    """
    Build the ordered seat map for a trip.

    Seats are laid out in rows of four, two on each side of the aisle
    (``1A 1B AISLE 1C 1D``). Seats that do not fill a complete row, plus any
    explicitly requested ``rear_bench`` seats, form one trailing contiguous
    row labelled by their ordinal seat number.

    Args:
        capacity: Total number of seats, must be positive
        rear_bench: Number of seats reserved for the back bench

    Returns:
        Seat identifiers interleaved with ``AISLE`` markers

    Raises:
        ValueError: If capacity is not positive or rear_bench is out of range
    """
    if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
        raise ValueError(f"Seat capacity must be a positive integer, got {capacity!r}")
    if isinstance(rear_bench, bool) or not isinstance(rear_bench, int) or not 0 <= rear_bench <= capacity:
        raise ValueError(f"Rear bench must be between 0 and {capacity}, got {rear_bench!r}")

    full_rows, leftover = divmod(capacity - rear_bench, SEATS_PER_ROW)

    layout: list[str] = []
    for row in range(1, full_rows + 1):
        left, right = ROW_LETTERS[:2], ROW_LETTERS[2:]
        layout.extend(f"{row}{letter}" for letter in left)
        layout.append(AISLE)
        layout.extend(f"{row}{letter}" for letter in right)

    first_back_seat = full_rows * SEATS_PER_ROW + 1
    layout.extend(str(number) for number in range(first_back_seat, first_back_seat + leftover + rear_bench))

    return layout


def seat_ids(capacity: int, rear_bench: int = 0) -> list[str]:
    """Return only the seat identifiers of a layout, in display order."""
    return [seat for seat in generate_seat_layout(capacity, rear_bench) if seat != AISLE]


def layout_rows(layout: list[str]) -> list[list[str]]:
    """
    Group a flat layout into display rows.

    Full rows keep their aisle marker; the trailing bench comes back as a
    single row.
    """
    rows: list[list[str]] = []
    current: list[str] = []
    for item in layout:
        current.append(item)
        if len(current) == SEATS_PER_ROW + 1 and AISLE in current:
            rows.append(current)
            current = []
    if current:
        rows.append(current)
    return rows
