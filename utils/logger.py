# utils/logger.py
# This file is part of Ballotrace - Symbolic Voting Protocol Replay
#
# Logging utility for trace replay with configurable levels

import logging
import sys
from enum import Enum
from typing import Optional


class LogLevel(Enum):
    """Log levels for trace replay."""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR


class ReplayLogger:
    """Centralized logger for protocol replay with structured output."""

    def __init__(self, name: str = "ballotrace", level: LogLevel = LogLevel.INFO):
        """Initialize the replay logger.

        Args:
            name: Logger name (typically module name)
            level: Default logging level
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level.value)

        # Remove existing handlers to avoid duplicates
        self.logger.handlers.clear()

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level.value)
        console_handler.setFormatter(ReplayFormatter())

        self.logger.addHandler(console_handler)

        # Prevent propagation to root logger
        self.logger.propagate = False

    def set_level(self, level: LogLevel):
        """Change the logging level."""
        self.logger.setLevel(level.value)
        for handler in self.logger.handlers:
            handler.setLevel(level.value)

    # Core logging methods
    def debug(self, message: str, **kwargs):
        """Log debug message (detailed internal state)."""
        self.logger.debug(message, **kwargs)

    def info(self, message: str, **kwargs):
        """Log info message (general progress)."""
        self.logger.info(message, **kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message (unexpected but recoverable)."""
        self.logger.warning(message, **kwargs)

    def error(self, message: str, **kwargs):
        """Log error message (serious problems)."""
        self.logger.error(message, **kwargs)

    # Specialized methods for replay events
    def replay_start(self, model_name: str, step_count: int, restrictions: int):
        """Log replay initialization."""
        self.info("=== Starting Replay ===")
        self.info(f"Model: {model_name}")
        self.info(f"Scripted steps: {step_count}, restrictions: {restrictions}")

    def step_executed(self, clock: int, instance_id: str, action: str):
        """Log one executed scheduler step."""
        self.debug(f"  t={clock} {instance_id}: {action}")

    def instance_aborted(self, instance_id: str, reason: str):
        """Log guard-failure termination of an instance."""
        self.debug(f"    ✂️  {instance_id} terminated: {reason}")

    def instance_suspended(self, instance_id: str, action: str):
        """Log that an instance is blocked on a get/receive."""
        self.debug(f"    ⏸  {instance_id} suspended at {action}")

    def rewrite_applied(self, symbol: str, result: str):
        """Log a successful rewrite."""
        self.debug(f"      ↪ {symbol} → {result}")

    def restriction_violated(self, name: str, step_index: int, substitution: str):
        """Log inadmissibility of the current trace."""
        self.info(f"🚫 Restriction {name} violated at step {step_index}: {substitution}")

    def query_result(self, name: str, verdict: str, witness: Optional[str] = None):
        """Log one query verdict."""
        if witness:
            self.info(f"  {name}: {verdict} (witness: {witness})")
        else:
            self.info(f"  {name}: {verdict}")

    def final_summary(self, steps: int, events: int):
        """Log final replay statistics."""
        self.info(f"\n>>> REPLAY COMPLETE: {steps} steps, {events} events <<<")

    def validation_result(self, success: bool, message: str = ""):
        """Log validation results."""
        if success:
            self.debug(f"✅ {message}" if message else "✅ Validation successful")
        else:
            self.error(f"❌ {message}" if message else "❌ Validation failed")


class ReplayFormatter(logging.Formatter):
    """Custom formatter for replay logging with clean output."""

    def format(self, record):
        # For INFO level and above, show message only (clean output)
        if record.levelno >= logging.INFO and record.levelno < logging.WARNING:
            return record.getMessage()

        if record.levelno == logging.DEBUG:
            return f"[DEBUG] {record.getMessage()}"

        return f"[{record.levelname}] {record.getMessage()}"


# Global logger instance
_global_logger: Optional[ReplayLogger] = None


def get_logger(name: str = "ballotrace") -> ReplayLogger:
    """Get or create the global replay logger instance.

    Args:
        name: Logger name (default: "ballotrace")

    Returns:
        ReplayLogger instance
    """
    global _global_logger
    if _global_logger is None:
        _global_logger = ReplayLogger(name)
    return _global_logger


def set_log_level(level: LogLevel):
    """Set the global log level.

    Args:
        level: New log level
    """
    logger = get_logger()
    logger.set_level(level)


def configure_logging(verbose: bool = False, debug: bool = False):
    """Configure logging based on command line flags.

    Args:
        verbose: Enable verbose (INFO) output
        debug: Enable debug output (overrides verbose)
    """
    if debug:
        set_log_level(LogLevel.DEBUG)
    elif verbose:
        set_log_level(LogLevel.INFO)
    else:
        set_log_level(LogLevel.WARNING)
