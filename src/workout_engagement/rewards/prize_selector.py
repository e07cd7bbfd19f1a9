"""Weighted random prize selection for the reward wheel."""

from typing import Sequence

from ..clock import RandomSource
from ..exceptions import ConfigurationError
from ..models.rewards import PrizeDefinition


def select_prize(
    table: Sequence[PrizeDefinition],
    random_source: RandomSource,
) -> PrizeDefinition:
    """
    Draw one prize with probability proportional to its weight.

    Weights need not sum to 100. The first prize whose cumulative weight
    reaches the draw wins; if rounding leaves the draw past the last
    cumulative weight, the last prize is returned.

    Args:
        table: Prize definitions with positive weights
        random_source: Callable returning floats in [0, 1)

    Returns:
        The selected prize
    """
    if not table:
        raise ConfigurationError("Prize table is empty")

    total = sum(prize.probability_weight for prize in table)
    r = random_source() * total

    cumulative = 0.0
    for prize in table:
        cumulative += prize.probability_weight
        if cumulative >= r:
            return prize

    return table[-1]
