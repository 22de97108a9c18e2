"""
Uniformity scoring of pixel rows.
"""

import numpy as np

MAX_UNIFORMITY = 255


class LineScorer:
    """
    Scores how uniform a row of pixels is.

    The spread of a row is the difference between its largest and smallest
    channel value over all pixels; uniformity is 255 minus the spread. A flat
    row (solid white gutter, solid black border) scores 255, a row crossing
    line art scores close to 0.
    """

    def __init__(self, sensitivity: int = 220):
        """
        Initialize the scorer.

        Args:
            sensitivity: Minimum uniformity (0-255) for a row to count as
                a candidate. 0 accepts any row, 255 only perfectly flat rows.
        """
        self.sensitivity = sensitivity

    @staticmethod
    def score(row: np.ndarray) -> int:
        """
        Compute the uniformity of a single row.

        Args:
            row: Pixels of the row, shape (width,) or (width, channels).

        Returns:
            Uniformity in [0, 255].
        """
        if row.size == 0:
            return MAX_UNIFORMITY

        spread = int(row.max()) - int(row.min())
        return int(np.clip(MAX_UNIFORMITY - spread, 0, MAX_UNIFORMITY))

    @staticmethod
    def score_rows(rows: np.ndarray) -> np.ndarray:
        """
        Compute the uniformity of several rows at once.

        Args:
            rows: Array of shape (n, width) or (n, width, channels).

        Returns:
            Integer array of n uniformity values.
        """
        if len(rows) == 0:
            return np.empty(0, dtype=np.int32)

        flat = rows.reshape(len(rows), -1).astype(np.int32)
        spread = flat.max(axis=1) - flat.min(axis=1)
        return np.clip(MAX_UNIFORMITY - spread, 0, MAX_UNIFORMITY)

    def is_candidate(self, row: np.ndarray) -> bool:
        """Whether a row is uniform enough to cut at."""
        return self.score(row) >= self.sensitivity

    def candidates(self, rows: np.ndarray) -> np.ndarray:
        """Boolean mask of the rows uniform enough to cut at."""
        return self.score_rows(rows) >= self.sensitivity
