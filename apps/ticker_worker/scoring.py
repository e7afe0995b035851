# apps/ticker_worker/scoring.py

import math
from dataclasses import dataclass
from typing import List

from packages.contracts.schemas import Asset
from packages.contracts.vocabulary.general import NATIVE_ASSET_ID
from packages.ticker_lib.numeric import round_half_up

NATIVE_SCORE = 100.0


@dataclass(frozen=True)
class ScoreBreakdown:
    spread_penalty: float
    bonuses: float
    depth10_score: float
    volume_score: float
    num_trades_score: float

    @property
    def total(self) -> float:
        return self.spread_penalty * (
            self.bonuses + self.depth10_score + self.volume_score + self.num_trades_score
        )


def spread_penalty(spread: float) -> float:
    """(1 - spread)^3, always in [0, 1]."""
    spread = min(1.0, max(0.0, spread))
    return (1 - spread) ** 3


def breakdown(asset: Asset) -> ScoreBreakdown:
    buckets = asset.num_trade_records_24h or 0
    volume_usd = asset.volume24h_usd or 0.0
    depth_usd = asset.depth10_usd or 0.0

    # Full books on both sides look alive, even without a market maker
    num_offers_score = ((asset.num_bids or 0) + (asset.num_asks or 0)) / 20
    activity_bonus = min(12, buckets) / 24
    nonzero_volume_bonus = min(1.0, volume_usd / 100)

    # Depth weighs the most: log term plus a linear term capped at $100k
    depth10_score = 0.5 * (math.log2(2 + depth_usd) - 1) + min(10.0, depth_usd / 10000)
    volume_score = math.log(4 + volume_usd, 4) - 1
    num_trades_score = math.log(4 + (asset.num_trades_24h or 0), 4) - 1 + min(7, buckets / 8)

    return ScoreBreakdown(
        spread_penalty=spread_penalty(asset.spread or 0.0),
        bonuses=num_offers_score + activity_bonus + nonzero_volume_bonus,
        depth10_score=depth10_score,
        volume_score=volume_score,
        num_trades_score=num_trades_score,
    )


class ActivityScorer:
    """
    Phase 4. Pure function of the metrics already on the assets.
    score = spread_penalty * (bonuses + depth10_score + volume_score + num_trades_score)
    """

    def __init__(self, logger):
        self.logger = logger

    def score(self, asset: Asset) -> float:
        if asset.id == NATIVE_ASSET_ID:
            return NATIVE_SCORE
        # No two-sided book against XLM
        if asset.price_xlm is None:
            return 0.0

        parts = breakdown(asset)
        self.logger.debug(
            f"{asset.slug:<25} Score: {parts.total:>8.3f} Inputs: "
            f"{parts.spread_penalty:.3f} * ({parts.bonuses:.3f} + {parts.depth10_score:.3f} + "
            f"{parts.volume_score:.3f} + {parts.num_trades_score:.3f})"
        )
        return parts.total

    def rank(self, assets: List[Asset]) -> List[Asset]:
        """
        Scores every asset and returns them best first. XLM is always first and
        exact ties keep directory order. Scores are rounded after sorting.
        """
        for asset in assets:
            asset.activity_score = self.score(asset)

        ranked = sorted(
            assets, key=lambda a: (a.id != NATIVE_ASSET_ID, -a.activity_score)
        )
        for asset in ranked:
            asset.activity_score = round_half_up(asset.activity_score, 3)

        self.logger.info(f"Ranked {len(ranked)} assets")
        return ranked
