"""
Structured logging for Backend WalletRisk.

JSON logs with timestamp, address, event_type and scoring context.
Use get_logger() in all modules for aggregation-friendly output.
"""

from backend_walletrisk.walletrisk_logging.logger import bind_address, get_logger

__all__ = ["bind_address", "get_logger"]
