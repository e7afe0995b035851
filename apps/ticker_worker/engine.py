# apps/ticker_worker/engine.py

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from packages.contracts.payloads import DirectorySnapshot
from packages.contracts.schemas import (
    Asset,
    ExternalPrices,
    LedgerMeta,
    Pair,
    Ticker,
    TickerMeta,
    TickerStatus,
)
from packages.contracts.vocabulary.general import (
    NATIVE_ASSET_CODE,
    NATIVE_ASSET_ID,
    NATIVE_ASSET_WEBSITE,
    Artifact,
    TickerState,
)
from packages.ticker_lib.config import Settings, settings as default_settings
from packages.ticker_lib.concurrency import gather_or_cancel
from packages.ticker_lib.date_utils import utc_now
from packages.ticker_lib.errors import PairFailureThresholdExceeded, PipelineTimeoutError
from packages.ticker_lib.logging import LogHistory
from packages.ticker_lib.redaction import redact_secrets
from .pair_metrics import PairMetricsComputer, PairOutcome, apply_pair_metrics
from .prices import ExternalPriceAggregator
from .scoring import ActivityScorer
from .sources.factory import TickerSources


@dataclass
class TickerRunResult:
    files: Dict[str, str]
    log: List[str]
    status: TickerStatus
    ticker: Ticker | None = None
    errors: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status.ticker_state == TickerState.SUCCESS


@dataclass
class PhaseOneResult:
    ledger: LedgerMeta
    version: int
    prices: ExternalPrices


def error_payload(error: BaseException) -> Dict[str, Any]:
    cause = error.__cause__ or error.__context__
    return {
        "type": type(error).__name__,
        "message": str(error),
        "detail": getattr(error, "detail", None),
        "cause": repr(cause) if cause is not None else None,
    }


class TickerEngine:
    """
    Builds one ticker document in four strictly sequential phases:
      1. Ledger status, client version and external prices (concurrent)
      2. Asset and pair universe from the directory
      3. Per-pair market metrics (concurrent, merged by a single reducer)
      4. Activity scoring and ranking
    """

    def __init__(
        self,
        sources: TickerSources,
        logger,
        settings: Settings = default_settings,
        history: LogHistory | None = None,
        clock: Callable = utc_now,
    ):
        self.sources = sources
        self.logger = logger
        self.settings = settings
        self.history = history
        self.clock = clock

    # --- Phases ---

    async def run_phase1(self) -> PhaseOneResult:
        self.logger.info("Starting Phase 1")
        aggregator = ExternalPriceAggregator(
            self.sources.btc_usd_feeds,
            self.sources.xlm_btc_feeds,
            self.sources.quote,
            logger=self.logger.bind(context="prices"),
            config=self.settings.prices,
        )

        root, version, prices = await gather_or_cancel(
            self.sources.ledger.get_root_status(),
            self.sources.version_probe.fetch_version(),
            aggregator.aggregate(),
        )
        self.logger.info(f"Ledger {root.core_latest_ledger} | client version {version}")
        self.logger.success("Phase 1 completed")

        return PhaseOneResult(
            ledger=LedgerMeta(
                core_latest_ledger=root.core_latest_ledger,
                network_passphrase=root.network_passphrase,
            ),
            version=version,
            prices=prices,
        )

    async def run_phase2(self, ticker: Ticker) -> DirectorySnapshot:
        self.logger.info("Starting Phase 2: loading assets")
        snapshot = await self.sources.directory.initialize()
        ticker.meta.build_id = snapshot.build_id

        ticker.assets = [
            Asset(
                id=NATIVE_ASSET_ID,
                code=NATIVE_ASSET_CODE,
                issuer=None,
                domain="native",
                slug=NATIVE_ASSET_ID,
                website=NATIVE_ASSET_WEBSITE,
                price_xlm=1,
                price_usd=ticker.meta.external_prices.usd_xlm,
            )
        ]
        for asset_id, entry in snapshot.assets.items():
            anchor = snapshot.anchors.get(entry.domain)
            if anchor is None:
                self.logger.warning(f"{asset_id}: no anchor entry for {entry.domain}")
            ticker.assets.append(
                Asset(
                    id=asset_id,
                    code=entry.code,
                    issuer=entry.issuer,
                    domain=entry.domain,
                    slug=f"{entry.code}-{entry.domain}",
                    website=anchor.website if anchor else None,
                )
            )

        ticker.pairs = {
            slug: Pair(base=pair.base, counter=pair.counter)
            for slug, pair in snapshot.pairs.items()
        }
        self.logger.success(
            f"Phase 2 completed: {len(ticker.assets)} assets, {len(ticker.pairs)} pairs"
        )
        return snapshot

    def check_failures(self, outcomes: List[PairOutcome]):
        failed = [o for o in outcomes if o.failed]
        if not failed:
            return

        max_ratio = self.settings.pipeline.max_pair_failure_ratio
        self.logger.warning(
            f"{len(failed)}/{len(outcomes)} pairs failed: "
            f"{', '.join(o.slug for o in failed)}"
        )
        if len(failed) / len(outcomes) > max_ratio:
            raise PairFailureThresholdExceeded(
                len(failed), len(outcomes), max_ratio
            ) from failed[0].error

    async def run_phase3(self, ticker: Ticker):
        self.logger.info("Starting Phase 3")
        computer = PairMetricsComputer(
            self.sources.ledger,
            ticker.meta.external_prices,
            logger=self.logger.bind(context="pairs"),
            config=self.settings.ledger,
            clock=self.clock,
        )
        outcomes = await computer.compute_all(ticker.pairs)
        self.check_failures(outcomes)

        apply_pair_metrics(
            ticker, [o.metrics for o in outcomes if not o.failed], self.logger
        )
        self.logger.success("Phase 3 completed")

    def run_phase4(self, ticker: Ticker):
        self.logger.info("Starting Phase 4")
        scorer = ActivityScorer(self.logger.bind(context="scoring"))
        ticker.assets = scorer.rank(ticker.assets)
        self.logger.info(
            "Phase 4 explanation: spread_penalty * "
            "(bonuses + depth10_score + volume_score + num_trades_score)"
        )
        self.logger.success("Phase 4 completed")

    # --- Entry points ---

    async def build(self) -> Ticker:
        start = self.clock()
        phase1 = await self.run_phase1()

        ticker = Ticker(
            meta=TickerMeta(
                start=int(start.timestamp()),
                start_iso=start.isoformat(),
                horizon=phase1.ledger,
                stellar_term_version=phase1.version,
                external_prices=phase1.prices,
            )
        )
        await self.run_phase2(ticker)
        await self.run_phase3(ticker)
        self.run_phase4(ticker)
        return ticker

    def _secrets(self) -> List[str]:
        return [self.settings.prices.cmc_api_key]

    def _log_lines(self) -> List[str]:
        if self.history is None:
            return []
        return [redact_secrets(line, self._secrets()) for line in self.history.lines]

    def _error_lines(self) -> List[str]:
        if self.history is None:
            return []
        return [redact_secrets(line, self._secrets()) for line in self.history.errors()]

    async def run(self) -> TickerRunResult:
        """
        Never raises for pipeline failures. On failure only the status artifact
        is produced, with configured secrets masked out.
        """
        deadline = self.settings.pipeline.deadline_seconds
        try:
            try:
                ticker = await asyncio.wait_for(self.build(), timeout=deadline)
            except asyncio.TimeoutError as e:
                raise PipelineTimeoutError(deadline) from e
        except Exception as e:
            self.logger.error(f"Ticker generation failed: {e!r}")
            raw = TickerStatus(ticker_state=TickerState.FAILED, error=error_payload(e))
            state_json = redact_secrets(raw.to_json(), self._secrets())
            status = TickerStatus.model_validate_json(state_json)
            return TickerRunResult(
                files={Artifact.STATE.value: state_json},
                log=self._log_lines(),
                status=status,
                errors=self._error_lines(),
            )

        self.logger.success("Ticker generation succeeded")
        status = TickerStatus(ticker_state=TickerState.SUCCESS, error=None)
        return TickerRunResult(
            files={
                Artifact.TICKER.value: ticker.to_json(),
                Artifact.STATE.value: status.to_json(),
            },
            log=self._log_lines(),
            status=status,
            ticker=ticker,
            errors=self._error_lines(),
        )
