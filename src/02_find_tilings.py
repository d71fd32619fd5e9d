import argparse
import logging
import os
import time
from concurrent.futures import ProcessPoolExecutor
from functools import partial
from pathlib import Path
from typing import Iterable, Optional, Sequence

import cv2
import numpy as np

from board_helpers import (
    BOARD_HEIGHT,
    BOARD_WIDTH,
    PIECE_DEFINITIONS,
    classify_by_parity,
    format_solution,
    generate_orientations,
    index_to_x_y,
    iter_branches,
    iter_set_bits,
    iter_solutions,
    solve_branch,
    validate_solution,
)
from path_helpers import IMAGES_DIR, ensure_output_dir

LOGGER = logging.getLogger(__name__)

# One fill color per search depth
PALETTE = [
    (231, 76, 60),
    (46, 204, 113),
    (52, 152, 219),
    (155, 89, 182),
    (241, 196, 15),
    (230, 126, 34),
    (26, 188, 156),
]


def render_solution_image(
    solution: Sequence[int],
    out_path: str,
    board_width: int = BOARD_WIDTH,
    board_height: int = BOARD_HEIGHT,
    cell_size: int = 60,
    margin: int = 20,
) -> None:
    """Render a board image with one colored block per placement."""
    img_width = cell_size * board_width + margin * 2
    img_height = cell_size * board_height + margin * 2
    img = np.full((img_height, img_width, 3), 255, dtype=np.uint8)

    # Fill piece placements
    for depth, placement_mask in enumerate(solution):
        color = PALETTE[depth % len(PALETTE)]
        for cell_index in iter_set_bits(placement_mask):
            x, y = index_to_x_y(cell_index, board_width)
            x1 = margin + x * cell_size + 2
            y1 = margin + y * cell_size + 2
            x2 = margin + (x + 1) * cell_size - 2
            y2 = margin + (y + 1) * cell_size - 2
            cv2.rectangle(img, (x1, y1), (x2, y2), color, -1)

    # Draw grid
    for col in range(board_width + 1):
        x = margin + col * cell_size
        cv2.line(img, (x, margin), (x, margin + board_height * cell_size), (0, 0, 0), 2)
    for row in range(board_height + 1):
        y = margin + row * cell_size
        cv2.line(img, (margin, y), (margin + board_width * cell_size, y), (0, 0, 0), 2)

    cv2.imwrite(out_path, img)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Enumerate every way to tile the 4x7 board with the seven tetrominoes."
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="number of worker processes (0 = cpu count, 1 = no multiprocessing)",
    )
    parser.add_argument(
        "--chunksize",
        type=int,
        default=1,
        help="first-move branches per multiprocessing task",
    )
    parser.add_argument("--progress-every", type=int, default=10_000, help="progress interval (solutions)")
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="do not print solution grids, only the summary",
    )
    parser.add_argument(
        "--images-dir",
        nargs="?",
        const=str(IMAGES_DIR),
        default=None,
        help=f"write one PNG per solution (default dir when flag given without value: {IMAGES_DIR})",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    try:
        start_time = time.time()
        found = 0

        images_dir: Optional[Path] = None
        if args.images_dir:
            if args.images_dir == str(IMAGES_DIR):
                ensure_output_dir()
            images_dir = Path(args.images_dir)
            images_dir.mkdir(parents=True, exist_ok=True)

        orientation_sets = generate_orientations(PIECE_DEFINITIONS, board_width=BOARD_WIDTH)
        LOGGER.info(
            "orientations per piece: %s",
            " ".join(str(len(orientation_set)) for orientation_set in orientation_sets),
        )

        parity_possible, board_diff, piece_diffs = classify_by_parity(orientation_sets, BOARD_WIDTH, BOARD_HEIGHT)
        if not parity_possible:
            LOGGER.warning(
                "checkerboard parity rules out every tiling (board diff %s, piece diffs %s); searching anyway",
                board_diff,
                piece_diffs,
            )

        worker_count = args.workers if args.workers >= 0 else 0
        if worker_count == 0:
            worker_count = os.cpu_count() or 1
        use_multiprocessing = worker_count > 1

        def report(solutions: Iterable[Sequence[int]]) -> None:
            nonlocal found
            for solution in solutions:
                validate_solution(solution, BOARD_WIDTH, BOARD_HEIGHT)
                found += 1
                if not args.quiet:
                    print(format_solution(solution, BOARD_WIDTH, BOARD_HEIGHT))
                if images_dir is not None:
                    out_path = images_dir / f"solution_{found:05d}.png"
                    render_solution_image(solution, str(out_path), BOARD_WIDTH, BOARD_HEIGHT)

                if args.progress_every > 0 and found % args.progress_every == 0:
                    elapsed = time.time() - start_time
                    rate = found / elapsed if elapsed > 0 else 0.0
                    LOGGER.info("[%s solutions] %.1f solutions/s", f"{found:,}", rate)

        if use_multiprocessing:
            branches = list(iter_branches(orientation_sets, BOARD_WIDTH, BOARD_HEIGHT))
            LOGGER.info("dispatching %s first-move branches to %s workers", len(branches), worker_count)
            with ProcessPoolExecutor(max_workers=worker_count) as executor:
                solver = partial(
                    solve_branch,
                    orientation_sets=orientation_sets,
                    board_width=BOARD_WIDTH,
                    board_height=BOARD_HEIGHT,
                )
                for branch_solutions in executor.map(solver, branches, chunksize=max(args.chunksize, 1)):
                    report(branch_solutions)
        else:
            report(iter_solutions(orientation_sets, BOARD_WIDTH, BOARD_HEIGHT))

        elapsed = time.time() - start_time
        LOGGER.info("=== DONE ===")
        LOGGER.info("solutions: %s", f"{found:,}")
        LOGGER.info("time: %.1f min", elapsed / 60)
        if images_dir is not None:
            LOGGER.info("wrote images to: %s", images_dir)
    except Exception:
        LOGGER.exception("Failed to enumerate tilings")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
