"""Half-up rounding for the percentages and scores shown on dashboards."""

from decimal import Decimal, ROUND_HALF_UP


def round_half_up(value: float, places: int = 0):
    """Round halves away from zero instead of to the nearest even digit.

    ``round_half_up(12.5)`` is 13 where the builtin ``round`` gives 12.
    Returns an ``int`` when ``places`` is 0, otherwise a ``float``.
    """
    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)
    return int(rounded) if places == 0 else float(rounded)
