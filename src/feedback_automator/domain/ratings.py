"""Rating policy modes."""

from collections.abc import Mapping
from dataclasses import dataclass, field

FALLBACK_RATING = 1


@dataclass(frozen=True)
class UniformRating:
    """Apply the same rating to every record."""

    value: int

    def rating_for(self, record_id: int) -> int:
        return self.value


@dataclass(frozen=True)
class PerRecordRating:
    """Ratings chosen per record; ``None`` until the caller supplies them."""

    ratings: Mapping[int, int] | None = field(default=None)

    @property
    def needs_input(self) -> bool:
        return self.ratings is None

    def rating_for(self, record_id: int) -> int:
        """Look up a record's rating, falling back to the top mark."""
        if not self.ratings:
            return FALLBACK_RATING
        return self.ratings.get(record_id, FALLBACK_RATING)


RatingPolicy = UniformRating | PerRecordRating
