"""Logging setup shared by the API, the Celery worker and the CLI.

Records emitted inside an analysis run carry an ``analysis_id`` attribute
(see ``analysis_logger``); both output formats include it.
"""

import json
import logging
import sys
from datetime import datetime, timezone

from brandpulse.core.config import settings

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(analysis_id)s | %(name)s | %(message)s"
NO_ANALYSIS = "-"


class AnalysisContextFilter(logging.Filter):
    """Gives records logged outside a run a placeholder ``analysis_id``."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "analysis_id"):
            record.analysis_id = NO_ANALYSIS
        return True


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        analysis_id = getattr(record, "analysis_id", NO_ANALYSIS)
        if analysis_id != NO_ANALYSIS:
            log_data["analysis_id"] = analysis_id
        if record.exc_info and record.exc_info[1]:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, ensure_ascii=False)


def analysis_logger(logger: logging.Logger, analysis_id: str) -> logging.LoggerAdapter:
    """Adapter that stamps every record with the run's id."""
    return logging.LoggerAdapter(logger, {"analysis_id": analysis_id})


def setup_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """Configure the root logger. Arguments override the settings values."""
    resolved = getattr(logging, (level or settings.log_level).upper(), logging.INFO)
    use_json = settings.log_json if json_output is None else json_output

    root = logging.getLogger()
    root.setLevel(resolved)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    # stderr keeps stdout free for reports written by the CLI
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(resolved)
    handler.addFilter(AnalysisContextFilter())
    handler.setFormatter(JSONFormatter() if use_json else logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)

    # Provider calls are logged by the gateway, not per HTTP request
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(resolved if settings.app_debug else logging.WARNING)
