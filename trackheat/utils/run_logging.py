"""
Run-level logging utility

Provides file-based logging to <output_dir>/logs/trackheat.log for each CLI
run so a heatmap or region analysis can be reviewed after the fact.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from trackheat.utils.constants import LOG_DATE_FORMAT, LOG_FORMAT, RUN_LOG_FILENAME

logger = logging.getLogger(__name__)


class RunLogHandler:
    """
    Context manager for run-level file logging.

    Attaches a file handler to the root logger for the duration of one run
    and writes start/end markers around it.
    """

    def __init__(self, run_name: str, log_dir: Path):
        """
        Initialize run log handler.

        Args:
            run_name: Label for the run (usually the CLI command)
            log_dir: Directory that receives the log file
        """
        self.run_name = run_name
        self.log_dir = Path(log_dir)
        self.log_file = self.log_dir / RUN_LOG_FILENAME
        self.file_handler: Optional[logging.FileHandler] = None
        self.root_logger = logging.getLogger()

    def __enter__(self):
        """Set up file logging for this run."""
        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)

            self.file_handler = logging.FileHandler(
                self.log_file,
                mode='w',  # new run, fresh log
                encoding='utf-8'
            )
            self.file_handler.setFormatter(
                logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
            )
            self.file_handler.setLevel(self.root_logger.level or logging.INFO)
            self.root_logger.addHandler(self.file_handler)

            start_time = datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')
            self.root_logger.info("=" * 80)
            self.root_logger.info(f"Run started: {self.run_name}")
            self.root_logger.info(f"Start time: {start_time}")
            self.root_logger.info("=" * 80)

        except OSError as e:
            # Non-blocking: a run without a log file is still a valid run
            logger.warning(f"Failed to initialize run logging for {self.run_name}: {e}")
            self.file_handler = None

        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Clean up file logging for this run."""
        if not self.file_handler:
            return
        try:
            end_time = datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')
            self.root_logger.info("=" * 80)
            if exc_type is None:
                self.root_logger.info(f"Run completed successfully: {self.run_name}")
            else:
                self.root_logger.error(f"Run failed: {self.run_name} - {exc_type.__name__}: {exc_val}")
            self.root_logger.info(f"End time: {end_time}")
            self.root_logger.info("=" * 80)

            self.file_handler.flush()
            self.file_handler.close()
        finally:
            self.root_logger.removeHandler(self.file_handler)
            self.file_handler = None
