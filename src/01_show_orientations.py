import argparse
import logging

from board_helpers import (
    BOARD_WIDTH,
    PIECE_DEFINITIONS,
    generate_orientations,
    orientation_rows,
)

LOGGER = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Print every distinct orientation of each tetromino and the per-piece counts."
    )
    parser.add_argument(
        "--piece",
        type=int,
        action="append",
        default=None,
        help="only show this piece index (may be repeated)",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    try:
        orientation_sets = generate_orientations(PIECE_DEFINITIONS, board_width=BOARD_WIDTH)
        wanted = args.piece if args.piece else range(len(orientation_sets))

        total = 0
        for piece_index in wanted:
            if piece_index < 0 or piece_index >= len(orientation_sets):
                raise ValueError(f"invalid piece index: {piece_index}")
            for orientation in orientation_sets[piece_index]:
                for row in orientation_rows(orientation, board_width=BOARD_WIDTH):
                    print(row)
                print("--------")
            print(f"Piece {piece_index}: orientations={len(orientation_sets[piece_index])}")
            total += len(orientation_sets[piece_index])

        LOGGER.info("total orientations: %s", total)
    except Exception:
        LOGGER.exception("Failed to show orientations")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
