"""
Unified logging for the basket trade quoter.

Every engine module and HTTP client logs through a ``UnifiedLogger`` bound to a
component id such as ``CORE:TRADE_QUOTER`` or ``CLIENT:ZEROEX:chain=1``:

    logger = get_core_logger("trade_quoter")
    logger.with_context(chain=1, basket="0x...").info("Trade quote ...")

Sinks are installed once per process on loguru's global logger: a colored
stdout sink and two plain-text files under ``$QUOTE_LOG_DIR`` (default
``./logs``): ``quotes_history.log`` shared across runs and a per-run
``quotes_<timestamp>.log``.
"""

import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger as _logger

from quote_engine import config

_CONSOLE_READY = False
_FILES_READY = False

SOURCE_WIDTH = 40

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>{extra[component_id]}</magenta> | "
    "<cyan>{extra[source]}</cyan> | "
    "<level>{message}</level>"
)

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {extra[component_id]:<40} | {message}"


def _logs_dir() -> Path:
    logs_dir = Path(os.getenv("QUOTE_LOG_DIR", "logs"))
    logs_dir.mkdir(parents=True, exist_ok=True)
    return logs_dir


def _with_source(record) -> bool:
    """Only our own records reach the console; tag them with file:function:line."""
    if "component_id" not in record["extra"]:
        return False
    source = f"{record['module']}:{record['function']}:{record['line']}"
    if len(source) > SOURCE_WIDTH:
        source = "..." + source[-(SOURCE_WIDTH - 3):]
    record["extra"]["source"] = f"{source:>{SOURCE_WIDTH}}"
    return True


def _with_component(record) -> bool:
    record["extra"].setdefault("component_id", "UNKNOWN")
    return True


def _install_sinks(log_to_console: bool, level: str) -> None:
    global _CONSOLE_READY, _FILES_READY

    if not _CONSOLE_READY:
        _logger.remove()
        if log_to_console:
            _logger.add(
                sys.stdout,
                format=CONSOLE_FORMAT,
                level=level,
                colorize=True,
                filter=_with_source,
                backtrace=True,
                diagnose=False,
            )
        _CONSOLE_READY = True

    if not _FILES_READY:
        logs_dir = _logs_dir()
        run_ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        for path in (logs_dir / "quotes_history.log", logs_dir / f"quotes_{run_ts}.log"):
            _logger.add(
                str(path),
                format=FILE_FORMAT,
                level="DEBUG",
                filter=_with_component,
                backtrace=False,
                diagnose=False,
                enqueue=True,
                catch=True,
            )
        _FILES_READY = True


class UnifiedLogger:
    """
    Component-scoped wrapper around loguru.

    The first logger created decides the console level; later loggers only
    bind their own component id.
    """

    def __init__(
        self,
        component_type: str,
        component_name: str,
        context: Optional[Dict[str, Any]] = None,
        log_to_console: bool = True,
        log_level: str = "INFO",
    ):
        """
        Args:
            component_type: "core", "client" or "service"
            component_name: e.g. "trade_quoter", "zeroex", "gas_oracle"
            context: Extra tags appended to the component id (chain, basket)
            log_to_console: Install the stdout sink
            log_level: Console level
        """
        self.component_type = component_type.upper()
        self.component_name = component_name.upper()
        self.context = dict(context or {})
        self.log_to_console = log_to_console
        self.log_level = log_level.upper()

        parts = [self.component_type, self.component_name]
        parts.extend(f"{key}={value}" for key, value in self.context.items())
        self.component_id = ":".join(parts)

        _install_sinks(log_to_console, self.log_level)
        self._logger = _logger.bind(component_id=self.component_id)

    def _emit(self, level: str, message: str, **kwargs) -> None:
        # depth=2 attributes the record to our caller, not to this wrapper
        self._logger.opt(depth=2).log(level, message, **kwargs)

    def debug(self, message: str, **kwargs):
        self._emit("DEBUG", message, **kwargs)

    def info(self, message: str, **kwargs):
        self._emit("INFO", message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._emit("WARNING", message, **kwargs)

    def error(self, message: str, **kwargs):
        self._emit("ERROR", message, **kwargs)

    def with_context(self, **context) -> "UnifiedLogger":
        """Child logger with ``context`` merged into this logger's tags."""
        return UnifiedLogger(
            component_type=self.component_type,
            component_name=self.component_name,
            context={**self.context, **context},
            log_to_console=self.log_to_console,
            log_level=self.log_level,
        )


def get_logger(
    component_type: str,
    component_name: str,
    context: Optional[Dict[str, Any]] = None,
    log_to_console: bool = True,
    log_level: Optional[str] = None,
) -> UnifiedLogger:
    """
    Create a component logger.

    ``log_level`` defaults to ``settings.log_level`` (``LOG_LEVEL`` in the
    environment or ``.env``).
    """
    if log_level is None:
        log_level = config.settings.log_level
    return UnifiedLogger(component_type, component_name, context, log_to_console, log_level)


def get_client_logger(client_name: str, **context) -> UnifiedLogger:
    """Logger for external service clients (aggregator, gas oracle, price feed)."""
    return get_logger("client", client_name, context)


def get_service_logger(service_name: str, **context) -> UnifiedLogger:
    """Logger for applications embedding the engine."""
    return get_logger("service", service_name, context)


def get_core_logger(module_name: str, **context) -> UnifiedLogger:
    """Logger for engine modules."""
    return get_logger("core", module_name, context)
