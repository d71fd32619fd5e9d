"""Core board helpers for the 4x7 tetromino tight-fit problem."""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, List, NamedTuple, Sequence, Tuple

# =========================
# Board configuration
# =========================
BOARD_WIDTH = 4
BOARD_HEIGHT = 7

# One symbol per search depth, used when printing a solution.
DEPTH_SYMBOLS = ".%=#@$*"

LOGGER = logging.getLogger(__name__)


class OverlappingPiecesError(RuntimeError):
    """Two placements of a reported solution share a cell."""


class IncompleteCoverError(RuntimeError):
    """A reported solution leaves cells uncovered or covers cells off the board."""


# =========================
# Index / coord helpers
# =========================
def index_to_x_y(index: int, board_width: int = BOARD_WIDTH) -> Tuple[int, int]:
    """Convert a linear bit index into (x, y)."""
    y, x = divmod(index, board_width)
    return x, y


def x_y_to_index(x: int, y: int, board_width: int = BOARD_WIDTH) -> int:
    """Convert (x, y) into a linear bit index."""
    return x + board_width * y

# =========================
# Bit helpers
# =========================
def iter_set_bits(mask: int) -> Iterable[int]:
    """Yield set bit positions from a bitmask."""
    while mask:
        least_significant_bit = mask & -mask
        yield least_significant_bit.bit_length() - 1
        mask ^= least_significant_bit


def full_board_mask(board_width: int = BOARD_WIDTH, board_height: int = BOARD_HEIGHT) -> int:
    """Return a bitmask with all board squares set."""
    return (1 << (board_width * board_height)) - 1


def bitmask_to_cells(mask: int, board_width: int = BOARD_WIDTH) -> Tuple[Tuple[int, int], ...]:
    """Convert a bitmask into a tuple of (x, y) cells."""
    return tuple(index_to_x_y(index, board_width) for index in iter_set_bits(mask))

# =========================
# Piece definitions
# =========================
class PieceDefinition(NamedTuple):
    """A canonical piece shape as a row-major character grid."""

    grid: str
    width: int
    height: int


PIECE_DEFINITIONS: Tuple[PieceDefinition, ...] = (
    PieceDefinition("####", 4, 1),
    PieceDefinition(
        "##"
        "##", 2, 2),
    PieceDefinition(
        "## "
        " ##", 3, 2),
    PieceDefinition(
        " ##"
        "## ", 3, 2),
    PieceDefinition(
        "###"
        "#  ", 3, 2),
    PieceDefinition(
        "###"
        "  #", 3, 2),
    PieceDefinition(
        " # "
        "###", 3, 2),
)

# =========================
# Orientations
# =========================
class Orientation(NamedTuple):
    """One rotation/mirror variant of a piece, anchored at the top-left corner."""

    mask: int
    width: int
    height: int


OrientationSet = Tuple[Orientation, ...]


def mask_from_definition(piece: PieceDefinition, board_width: int = BOARD_WIDTH) -> int:
    """Build the canonical bitmask of a piece; any non-blank character is filled."""
    mask = 0
    for y in range(piece.height):
        for x in range(piece.width):
            if piece.grid[x + piece.width * y] != " ":
                mask |= 1 << x_y_to_index(x, y, board_width)
    return mask


def mirror_rows(orientation: Orientation, board_width: int = BOARD_WIDTH) -> Orientation:
    """Reflect an orientation across its horizontal axis (row r swaps with row h-1-r)."""
    mask, width, height = orientation
    row_mask = (1 << board_width) - 1
    for row in range(height // 2):
        low_shift = board_width * row
        high_shift = board_width * (height - 1 - row)
        low = (mask >> low_shift) & row_mask
        high = (mask >> high_shift) & row_mask
        mask &= ~((row_mask << low_shift) | (row_mask << high_shift))
        mask |= (high << low_shift) | (low << high_shift)
    return Orientation(mask, width, height)


def rotate_quarter_turn(orientation: Orientation, board_width: int = BOARD_WIDTH) -> Orientation:
    """Rotate an orientation by 90 degrees; (x, y) maps to (h-1-y, x) and w/h swap."""
    mask, width, height = orientation
    rotated_mask = 0
    for index in iter_set_bits(mask):
        x, y = index_to_x_y(index, board_width)
        rotated_mask |= 1 << x_y_to_index(height - 1 - y, x, board_width)
    return Orientation(rotated_mask, height, width)


def get_unique_orientations(piece: PieceDefinition, board_width: int = BOARD_WIDTH) -> OrientationSet:
    """Return all distinct orientations (rotations/mirrors) of a piece."""
    orientations: List[Orientation] = []
    current = Orientation(mask_from_definition(piece, board_width), piece.width, piece.height)
    for _ in range(4):
        for variant in (current, mirror_rows(current, board_width)):
            if variant not in orientations:
                orientations.append(variant)
        current = rotate_quarter_turn(current, board_width)
    return tuple(orientations)


def generate_orientations(
    piece_definitions: Sequence[PieceDefinition] = PIECE_DEFINITIONS,
    board_width: int = BOARD_WIDTH,
) -> Tuple[OrientationSet, ...]:
    """Compute the orientation set of every piece, in definition order."""
    orientation_sets = tuple(get_unique_orientations(piece, board_width) for piece in piece_definitions)
    for piece_index, orientation_set in enumerate(orientation_sets):
        LOGGER.debug("Piece %s: orientations=%s", piece_index, len(orientation_set))
    return orientation_sets


def orientation_rows(orientation: Orientation, board_width: int = BOARD_WIDTH) -> List[str]:
    """Decode an orientation back into rows of '#' and ' '."""
    return [
        "".join(
            "#" if orientation.mask >> x_y_to_index(x, y, board_width) & 1 else " "
            for x in range(orientation.width)
        )
        for y in range(orientation.height)
    ]

# =========================
# Parity helpers
# =========================
def is_black_square(index: int, board_width: int = BOARD_WIDTH) -> bool:
    """Return True if the index is on a black square in a checkerboard pattern."""
    x, y = index_to_x_y(index, board_width)
    return (x + y) % 2 == 0


def color_imbalance(mask: int, board_width: int = BOARD_WIDTH) -> int:
    """Return black minus white squares covered by mask."""
    diff = 0
    for index in iter_set_bits(mask):
        diff += 1 if is_black_square(index, board_width) else -1
    return diff


def classify_by_parity(
    orientation_sets: Sequence[OrientationSet],
    board_width: int = BOARD_WIDTH,
    board_height: int = BOARD_HEIGHT,
) -> Tuple[bool, int, List[int]]:
    """
    Return (parity_possible, board_diff, piece_diffs).

    Each piece covers |piece_diff| more squares of one color than the other,
    with the sign depending on where it lands. A tiling can only exist if some
    choice of signs sums to the board's own black-minus-white difference.
    """
    board_diff = color_imbalance(full_board_mask(board_width, board_height), board_width)
    piece_diffs = [abs(color_imbalance(orientation_set[0].mask, board_width)) for orientation_set in orientation_sets]

    reachable = {0}
    for piece_diff in piece_diffs:
        reachable = {total + piece_diff for total in reachable} | {total - piece_diff for total in reachable}

    return board_diff in reachable, board_diff, piece_diffs

# =========================
# Solver
# =========================
Solution = Tuple[int, ...]


def search(
    depth: int,
    occupancy: int,
    pool: List[OrientationSet],
    solution: List[int],
    board_width: int = BOARD_WIDTH,
    board_height: int = BOARD_HEIGHT,
) -> Iterator[Solution]:
    """
    Yield every completion of a partial placement sequence.

    Slots pool[depth:] hold the pieces not yet placed on this branch. The chosen
    slot is swapped into position `depth` for the duration of the subtree and
    swapped back afterwards, so the pool is unchanged when the generator finishes.
    """
    if depth == len(pool):
        yield tuple(solution)
        return

    for slot in range(depth, len(pool)):
        pool[depth], pool[slot] = pool[slot], pool[depth]
        for mask, width, height in pool[depth]:
            for y in range(board_height - height + 1):
                for x in range(board_width - width + 1):
                    placement_mask = mask << x_y_to_index(x, y, board_width)
                    if placement_mask & occupancy:
                        continue
                    solution[depth] = placement_mask
                    yield from search(
                        depth + 1,
                        occupancy | placement_mask,
                        pool,
                        solution,
                        board_width,
                        board_height,
                    )
        pool[depth], pool[slot] = pool[slot], pool[depth]


def iter_solutions(
    orientation_sets: Sequence[OrientationSet],
    board_width: int = BOARD_WIDTH,
    board_height: int = BOARD_HEIGHT,
) -> Iterator[Solution]:
    """Yield every placement sequence that tiles the board, in search order."""
    pool = list(orientation_sets)
    solution = [0] * len(pool)
    yield from search(0, 0, pool, solution, board_width, board_height)


def count_solutions(
    orientation_sets: Sequence[OrientationSet],
    board_width: int = BOARD_WIDTH,
    board_height: int = BOARD_HEIGHT,
) -> int:
    """Count every placement sequence that tiles the board."""
    return sum(1 for _ in iter_solutions(orientation_sets, board_width, board_height))


def iter_branches(
    orientation_sets: Sequence[OrientationSet],
    board_width: int = BOARD_WIDTH,
    board_height: int = BOARD_HEIGHT,
) -> Iterator[Tuple[int, int]]:
    """Yield (slot, placement_mask) for every first move, in search order."""
    for slot, orientation_set in enumerate(orientation_sets):
        for mask, width, height in orientation_set:
            for y in range(board_height - height + 1):
                for x in range(board_width - width + 1):
                    yield slot, mask << x_y_to_index(x, y, board_width)


def solve_branch(
    branch: Tuple[int, int],
    orientation_sets: Sequence[OrientationSet],
    board_width: int = BOARD_WIDTH,
    board_height: int = BOARD_HEIGHT,
) -> List[Solution]:
    """Return all solutions that start with the given first move."""
    slot, placement_mask = branch
    pool = list(orientation_sets)
    pool[0], pool[slot] = pool[slot], pool[0]
    solution = [0] * len(pool)
    solution[0] = placement_mask
    return list(search(1, placement_mask, pool, solution, board_width, board_height))

# =========================
# Validation / text output
# =========================
def validate_solution(
    solution: Sequence[int],
    board_width: int = BOARD_WIDTH,
    board_height: int = BOARD_HEIGHT,
) -> None:
    """Raise if placements overlap, leave the board, or leave cells uncovered."""
    board_mask = full_board_mask(board_width, board_height)
    covered = 0
    for depth, placement_mask in enumerate(solution):
        if placement_mask & covered:
            raise OverlappingPiecesError(
                f"Internal error: overlapping pieces! (depth {depth}, mask {placement_mask:#x})"
            )
        covered |= placement_mask
    if covered & ~board_mask:
        raise IncompleteCoverError(f"Internal error: placement off the board (mask {covered:#x})")
    if covered != board_mask:
        raise IncompleteCoverError(f"Internal error: board not fully covered (mask {covered:#x})")


def render_solution_rows(
    solution: Sequence[int],
    board_width: int = BOARD_WIDTH,
    board_height: int = BOARD_HEIGHT,
    symbols: str = DEPTH_SYMBOLS,
) -> List[str]:
    """Render a solution as rows of depth symbols; uncovered cells are blank."""
    rows: List[str] = []
    for y in range(board_height):
        row = []
        for x in range(board_width):
            bit = 1 << x_y_to_index(x, y, board_width)
            found = None
            for depth, placement_mask in enumerate(solution):
                if placement_mask & bit:
                    if found is not None:
                        raise OverlappingPiecesError("Internal error: overlapping pieces!")
                    found = depth
            row.append(" " if found is None else symbols[found])
        rows.append("".join(row))
    return rows


def format_solution(
    solution: Sequence[int],
    board_width: int = BOARD_WIDTH,
    board_height: int = BOARD_HEIGHT,
) -> str:
    """Return the printable announcement and grid for a solution."""
    lines = ["Hey, found a solution!"]
    lines.extend(render_solution_rows(solution, board_width, board_height))
    lines.append("--------")
    return "\n".join(lines)
