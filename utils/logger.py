"""
Logging utilities for the Scheduling Intelligence Engine
"""
import logging
import sys
from datetime import datetime
import json


class SmartCalendarLogger:
    """Custom logger for the scheduling engine"""

    @staticmethod
    def setup_logging(log_level: str = "INFO", log_file: str = None, stream=None):
        """Setup logging configuration"""

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, log_level.upper()))

        # Clear existing handlers
        root_logger.handlers.clear()

        console_handler = logging.StreamHandler(stream or sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        # Suppress some noisy loggers
        logging.getLogger('urllib3').setLevel(logging.WARNING)
        logging.getLogger('openai').setLevel(logging.WARNING)
        logging.getLogger('httpx').setLevel(logging.WARNING)

        return root_logger

    @staticmethod
    def log_engine_call(operation: str, request_summary: dict,
                        response_summary: dict, processing_time: float):
        """Log one facade call with its processing time"""
        logger = logging.getLogger(__name__)

        log_entry = {
            "timestamp": datetime.now().isoformat(),
            "operation": operation,
            "processing_time_seconds": round(processing_time, 4),
            "request_summary": request_summary,
            "response_summary": response_summary,
        }

        logger.info(f"Engine call processed: {json.dumps(log_entry, default=str)}")
