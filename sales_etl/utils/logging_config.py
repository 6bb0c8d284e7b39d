"""
Logging configuration for ETL pipeline.
"""

import logging
import logging.handlers
import os
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

DETAILED_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'
CONSOLE_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def _attach(root_logger: logging.Logger, handler: logging.Handler, level: int,
            fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    root_logger.addHandler(handler)
    return handler


def setup_file_logging(log_level: str = "INFO", log_dir: str = "logs") -> Dict[str, str]:
    """
    Configure console and file logging for a replication run.

    Writes three files under log_dir: a per-run log with every record, a
    per-run log with warnings and errors only (skipped rows, failures), and
    a size-rotated log shared by all runs.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_dir: Directory to store log files

    Returns:
        Dictionary with log file paths
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    run_stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    log_files = {
        'process_log': log_path / f"sales_etl_{run_stamp}.log",
        'error_log': log_path / f"sales_etl_errors_{run_stamp}.log",
        'rotating_log': log_path / "sales_etl.log",
    }

    _attach(root_logger, logging.StreamHandler(), max(level, logging.INFO), CONSOLE_FORMAT)
    _attach(root_logger, logging.FileHandler(log_files['process_log'], encoding='utf-8'),
            logging.DEBUG, DETAILED_FORMAT)
    _attach(root_logger, logging.FileHandler(log_files['error_log'], encoding='utf-8'),
            logging.WARNING, DETAILED_FORMAT)
    _attach(root_logger,
            logging.handlers.RotatingFileHandler(
                log_files['rotating_log'], maxBytes=10*1024*1024, backupCount=5, encoding='utf-8'
            ),
            logging.INFO, DETAILED_FORMAT)

    logging.info(f"Logging to {log_path} at level {log_level.upper()}")
    return {name: str(path) for name, path in log_files.items()}


def setup_pipeline_logging(log_dir: str = "logs") -> Dict[str, str]:
    """
    Configure logging for a pipeline run, level taken from LOG_LEVEL.

    Args:
        log_dir: Directory to store log files

    Returns:
        Dictionary with log file paths
    """
    log_level = os.getenv('LOG_LEVEL', 'INFO')
    return setup_file_logging(log_level, log_dir)


def log_etl_summary(result: Dict, log_files: Optional[Dict[str, str]] = None) -> None:
    """
    Log a summary of one pipeline run.

    Args:
        result: LoadResult.to_dict() of the run
        log_files: Dictionary of log file paths
    """
    logger = logging.getLogger(__name__)

    summary_lines = [
        "=" * 60,
        "ETL PIPELINE EXECUTION SUMMARY",
        "=" * 60,
        f"Rows processed: {result.get('rows_processed', 0):,}",
        f"Rows inserted: {result.get('rows_inserted', 0):,}",
        f"Rows already present: {result.get('rows_conflicted', 0):,}",
        f"Rows skipped: {result.get('rows_skipped', 0):,}",
    ]

    if result.get('target_rows') is not None:
        summary_lines.append(f"Target table rows: {result['target_rows']:,}")
    summary_lines.append(f"Duration: {result.get('duration_seconds', 0.0):.2f}s")

    if log_files:
        summary_lines.extend([
            "-" * 40,
            "Log files generated:",
        ])
        for log_type, log_path in log_files.items():
            summary_lines.append(f"  {log_type}: {log_path}")

    summary_lines.append("=" * 60)

    for line in summary_lines:
        logger.info(line)
