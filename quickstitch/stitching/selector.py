"""
Splitpoint selection over a canvas.

Walks the canvas top to bottom, one window at a time. A window spans the
rows between min_height and max_height below the last cut; the lowest
uniform row in it becomes the next cut. If the window has no uniform row
the cut is forced at max_height.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from .base import Splitpoint, SplitpointKind
from .canvas import Canvas
from .errors import ConfigurationError
from .scorer import LineScorer, MAX_UNIFORMITY

logger = logging.getLogger(__name__)


def validate_parameters(
    max_height: int,
    min_height: int,
    scan_interval: int,
    sensitivity: int,
) -> None:
    """
    Check selection parameters.

    Raises:
        ConfigurationError: If any parameter is out of range.
    """
    if max_height <= 0:
        raise ConfigurationError(f"Max height must be positive, got {max_height}")
    if min_height <= 0:
        raise ConfigurationError(f"Min height must be positive, got {min_height}")
    if min_height > max_height:
        raise ConfigurationError(
            f"Min height ({min_height}) cannot exceed max height ({max_height})"
        )
    if scan_interval <= 0:
        raise ConfigurationError(f"Scan interval must be positive, got {scan_interval}")
    if not 0 <= sensitivity <= MAX_UNIFORMITY:
        raise ConfigurationError(
            f"Sensitivity must be between 0 and {MAX_UNIFORMITY}, got {sensitivity}"
        )


@dataclass
class SelectionState:
    """Scan state carried from one window to the next."""

    cursor: int = 0
    """Offset of the last committed cut."""

    best: Optional[int] = None
    """Lowest candidate row seen in the current window."""

    skipped: list[int] = field(default_factory=list)
    """Candidates in the current window superseded by a later one."""

    def observe(self, row: int) -> None:
        """Record a candidate row; rows arrive in increasing order."""
        if self.best is not None:
            self.skipped.append(self.best)
        self.best = row

    def commit(self, max_height: int) -> list[Splitpoint]:
        """
        Close the current window and advance the cursor.

        Returns:
            The splitpoints produced by the window, in offset order.
        """
        if self.best is None:
            self.cursor += max_height
            return [Splitpoint(self.cursor, SplitpointKind.FALLBACK)]

        splitpoints = [Splitpoint(row, SplitpointKind.SKIPPED) for row in self.skipped]
        splitpoints.append(Splitpoint(self.best, SplitpointKind.CHOSEN))

        self.cursor = self.best
        self.best = None
        self.skipped = []
        return splitpoints


class SplitpointSelector:
    """Chooses the rows at which a canvas is cut into segments."""

    def __init__(
        self,
        max_height: int,
        min_height: int,
        scan_interval: int = 5,
        sensitivity: int = 220,
    ):
        """
        Initialize the selector.

        Args:
            max_height: Maximum segment height.
            min_height: Minimum height of every segment but the last.
            scan_interval: Only rows at multiples of this are scored.
            sensitivity: Minimum uniformity for a row to be a candidate.

        Raises:
            ConfigurationError: If the parameters are invalid.
        """
        validate_parameters(max_height, min_height, scan_interval, sensitivity)

        self.max_height = max_height
        self.min_height = min_height
        self.scan_interval = scan_interval
        self.scorer = LineScorer(sensitivity)

    @property
    def sensitivity(self) -> int:
        return self.scorer.sensitivity

    def window_rows(self, cursor: int) -> range:
        """Scan-aligned rows between min_height and max_height below the cursor."""
        start = cursor + self.min_height
        end = cursor + self.max_height

        # Round up to the next multiple of the interval
        first = -(-start // self.scan_interval) * self.scan_interval
        return range(first, end + 1, self.scan_interval)

    def select(self, canvas: Canvas) -> tuple[Splitpoint, ...]:
        """
        Select splitpoints for a canvas.

        Args:
            canvas: Canvas to scan.

        Returns:
            Splitpoints ordered by strictly increasing offset, including
            skipped candidates.
        """
        state = SelectionState()
        splitpoints: list[Splitpoint] = []

        while canvas.height - state.cursor > self.max_height:
            rows = self.window_rows(state.cursor)

            if len(rows) > 0:
                mask = self.scorer.candidates(canvas.take_rows(rows))
                for row, is_candidate in zip(rows, mask):
                    if is_candidate:
                        state.observe(row)

            window = state.commit(self.max_height)
            logger.debug(f"Cut at row {window[-1].offset} ({window[-1].kind.value})")
            splitpoints.extend(window)

        fallbacks = sum(1 for sp in splitpoints if sp.kind == SplitpointKind.FALLBACK)
        logger.info(
            f"Selected {sum(1 for sp in splitpoints if sp.is_committed)} cuts "
            f"over {canvas.height} rows ({fallbacks} forced)"
        )
        return tuple(splitpoints)


def select(
    canvas: Canvas,
    max_height: int,
    min_height: int,
    scan_interval: int,
    sensitivity: int,
) -> tuple[Splitpoint, ...]:
    """Select splitpoints for a canvas. See SplitpointSelector."""
    return SplitpointSelector(max_height, min_height, scan_interval, sensitivity).select(canvas)
