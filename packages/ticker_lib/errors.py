# packages/ticker_lib/errors.py


class TickerError(Exception):
    """Base class for every failure raised by the ticker pipeline."""


class SourceError(TickerError):
    """A collaborator answered with something we cannot use."""

    def __init__(self, source: str, detail: str):
        self.source = source
        self.detail = detail
        super().__init__(f"{source}: {detail}")


class PriceUnavailableError(TickerError):
    """Every source of a reconciliation group failed."""

    def __init__(self, group: str):
        self.group = group
        super().__init__(f"No price source returned a value for {group}")


class PairFailureThresholdExceeded(TickerError):
    def __init__(self, failed: int, total: int, max_ratio: float):
        self.failed = failed
        self.total = total
        self.max_ratio = max_ratio
        super().__init__(
            f"{failed}/{total} pairs failed (allowed ratio {max_ratio:.2f})"
        )


class PipelineTimeoutError(TickerError):
    def __init__(self, deadline_seconds: float):
        self.deadline_seconds = deadline_seconds
        super().__init__(f"Ticker generation exceeded {deadline_seconds:.0f}s")
