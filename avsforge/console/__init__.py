"""Rich, structured console output for avsforge.

Usage:
    from avsforge.console import logger

    logger.info("Resolving deployment order...")
    logger.success("Manifest generated")
    logger.warning("No config node matched artifact governance-v2")
    logger.error("Deployment failed")

    # Structured output
    logger.header("Deploy", "testnet / staging")
    logger.key_value({"artifacts": 4, "network": "holesky"})
    logger.report_summary(report)
"""
from avsforge.console.logger import Logger, get_logger

# Module-level singleton for convenient import
logger = get_logger()

__all__ = ["Logger", "get_logger", "logger"]
