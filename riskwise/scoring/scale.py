# riskwise/scoring/scale.py
"""
Ordinal rating scales for likelihood and impact.

Each scale maps its five levels to integer weights 1-5 in ascending order.
"""

import logging
from enum import Enum

from riskwise.errors import UnknownLevel
from riskwise.models.enums import Impact, Likelihood

logger = logging.getLogger(__name__)


class RatingScale:
    """
    A closed five-level ordinal scale.

    Weights follow declaration order of the enum: first member is 1, last is 5.
    Lookups accept either the enum member or its exact string value.
    """

    def __init__(self, name: str, levels: type[Enum]) -> None:
        self.name = name
        self.levels = levels
        self._weights = {level: index for index, level in enumerate(levels, start=1)}
        self._by_weight = {weight: level for level, weight in self._weights.items()}

    def parse(self, value: Enum | str) -> Enum:
        """
        Resolve a member of this scale.

        Raises:
            UnknownLevel: If value is not a member (or member value) of the scale
        """
        if isinstance(value, self.levels):
            return value
        if isinstance(value, str):
            try:
                return self.levels(value)
            except ValueError:
                pass
        logger.error(f"Data integrity: {value!r} is not a {self.name} level")
        raise UnknownLevel(self.name, value)

    def weight_of(self, level: Enum | str) -> int:
        """Return the 1-5 weight of a level."""
        return self._weights[self.parse(level)]

    def level_of(self, weight: int) -> Enum:
        """
        Return the level carrying a given weight.

        Raises:
            UnknownLevel: If weight is outside 1-5
        """
        try:
            return self._by_weight[weight]
        except (KeyError, TypeError):
            logger.error(f"Data integrity: {weight!r} is not a {self.name} weight")
            raise UnknownLevel(self.name, weight) from None

    def __iter__(self):
        return iter(self.levels)

    def __len__(self) -> int:
        return len(self._weights)


LIKELIHOOD_SCALE = RatingScale("likelihood", Likelihood)
IMPACT_SCALE = RatingScale("impact", Impact)
