"""
Ranking Engine - Composite relevance scoring with a deterministic total order.

Signals (each normalized to [0, 1] before weighting):
- proximity: 1 / (1 + distance_km), radius mode only
- quality: rating mapped from [1, 5] onto [floor, 1]; unrated listings use a
  prior below the floor, so they sit under every rated listing but above zero
- popularity: log-saturating review count
- promotion: partner boost, capped so it cannot outweigh the other signals
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from geodiscovery.config import RankingInvariantError, RankingWeights

from .models import MAX_RATING, MIN_RATING, Candidate, ScoredCandidate, SearchMode, SignalBreakdown

logger = logging.getLogger(__name__)

__all__ = ["CompositeRanker"]


class CompositeRanker:
    """
    Weighted-sum ranker.

    Ties on score are broken by: rated before unrated, higher rating, more
    reviews, shorter distance (radius mode), then identifier.

    Example:
        >>> ranker = CompositeRanker(RankingWeights())
        >>> ranked = ranker.rank(candidates, SearchMode.RADIUS)
    """

    def __init__(self, weights: RankingWeights | None = None) -> None:
        self._weights = weights or RankingWeights()
        self._popularity_norm = math.log1p(self._weights.popularity_saturation)

    @property
    def weights(self) -> RankingWeights:
        return self._weights

    def rank(
        self,
        candidates: Sequence[Candidate],
        mode: SearchMode,
    ) -> list[ScoredCandidate]:
        """
        Score and order candidates.

        Raises:
            RankingInvariantError: radius-mode candidate without a usable distance
        """
        scored = [self.score(candidate, mode) for candidate in candidates]
        scored.sort(key=lambda item: _order_key(item, mode))
        return scored

    def score(self, candidate: Candidate, mode: SearchMode) -> ScoredCandidate:
        """Compute the composite score for one candidate."""
        w = self._weights
        entity = candidate.entity

        proximity = 0.0
        proximity_weight = 0.0
        if mode is SearchMode.RADIUS:
            distance = candidate.distance_km
            if distance is None or not math.isfinite(distance) or distance < 0:
                logger.error(
                    "Ranking invariant violated: entity=%s distance=%r", entity.id, distance
                )
                raise RankingInvariantError(
                    "Candidate has no valid distance in radius mode",
                    {"entity_id": entity.id},
                )
            proximity = 1.0 / (1.0 + distance)
            proximity_weight = w.proximity

        signals = SignalBreakdown(
            proximity=proximity,
            quality=self._quality(entity.rating),
            popularity=self._popularity(entity.review_count),
            promotion=min(entity.promotion_weight, w.promotion_cap) / w.promotion_cap,
        )
        score = (
            proximity_weight * signals.proximity
            + w.quality * signals.quality
            + w.popularity * signals.popularity
            + w.promotion * signals.promotion
        )
        return ScoredCandidate(candidate=candidate, score=score, signals=signals)

    def _quality(self, rating: float | None) -> float:
        w = self._weights
        if rating is None:
            return w.unrated_quality_prior
        fraction = (rating - MIN_RATING) / (MAX_RATING - MIN_RATING)
        return w.rated_quality_floor + (1.0 - w.rated_quality_floor) * fraction

    def _popularity(self, review_count: int) -> float:
        return min(1.0, math.log1p(review_count) / self._popularity_norm)


def _order_key(item: ScoredCandidate, mode: SearchMode) -> tuple:
    entity = item.entity
    has_rating = entity.rating is not None
    distance = item.distance_km if mode is SearchMode.RADIUS else 0.0
    return (
        -item.score,
        not has_rating,
        -(entity.rating or 0.0),
        -entity.review_count,
        distance,
        entity.id,
    )
