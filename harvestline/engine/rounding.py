"""Half-up rounding for displayed figures.

The builtin ``round`` rounds halves to even, so 2.5 becomes 2. Every
percentage and one-decimal figure the API reports rounds halves up.
"""

from __future__ import annotations

import math


def round_half_up(value: float) -> int:
	return math.floor(value + 0.5)


def round1(value: float) -> float:
	"""Round to one decimal place, halves up."""
	return math.floor(value * 10 + 0.5) / 10
