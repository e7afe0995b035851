# packages/ticker_lib/logging.py

import sys
from pathlib import Path
from typing import List
from loguru import logger as _logger  # Aliased to avoid conflict


class LogHistory:
    """
    In-memory loguru sink. Collects the formatted lines of one run so they
    can be shipped next to the generated artifacts.
    """

    def __init__(self):
        self.lines: List[str] = []
        self.sink_id: int | None = None

    def write(self, message):
        record = message.record
        self.lines.append(
            f"{record['time']:%Y-%m-%d %H:%M:%S} | {record['level'].name: <8} | "
            f"{record['extra'].get('context', '-')} | {record['message']}"
        )

    def errors(self) -> List[str]:
        return [line for line in self.lines if "| ERROR" in line]

    def __len__(self):
        return len(self.lines)


class LogManager:
    # Pass 'debug' flag directly to decouple from settings
    def __init__(
        self, service_name: str, debug: bool = False, log_dir: Path | None = None
    ):
        self.service_name = service_name
        self.debug = debug
        self.log_dir = log_dir or Path(__file__).resolve().parents[2] / "logs"
        self._configure()

    def _configure(self):
        _logger.remove()

        self.log_dir.mkdir(parents=True, exist_ok=True)
        log_file = self.log_dir / f"{self.service_name}.json.log"

        # Console Handler
        _logger.add(
            sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{extra[context]}</cyan> | <level>{message}</level>",
            level="DEBUG" if self.debug else "INFO",
            colorize=True,
            filter=lambda record: "context" in record["extra"],
        )

        # File Handler (uses the passed-in debug flag)
        _logger.add(
            log_file,
            rotation="10 MB",
            retention="7 days",
            level="DEBUG" if self.debug else "INFO",
            serialize=True,
            enqueue=True,
        )

    def get_logger(self, context_name: str):
        return _logger.bind(app=self.service_name, context=context_name)

    def capture(self, level: str = "INFO") -> LogHistory:
        """Attaches a history sink scoped to this service. Detach with release()."""
        history = LogHistory()
        history.sink_id = _logger.add(
            history.write,
            level=level,
            filter=lambda record: record["extra"].get("app") == self.service_name,
        )
        return history

    def release(self, history: LogHistory):
        _logger.remove(history.sink_id)
