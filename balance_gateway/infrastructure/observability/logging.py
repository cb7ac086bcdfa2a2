"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger.json import JsonFormatter

from balance_gateway.config import settings


class CustomJsonFormatter(JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_balance_view(
    request_id: str,
    venue_id: str,
    tab: str,
    available_now: float,
    pending_settlement: float,
    duration_ms: float,
) -> None:
    """Log structured balance view outcome for analysis"""
    logging.info(
        "Balance view served",
        extra={
            "request_id": request_id,
            "venue_id": venue_id,
            "step": "balance_view_complete",
            "tab": tab,
            "available_now": available_now,
            "pending_settlement": pending_settlement,
            "duration_ms": duration_ms,
        },
    )


def log_simulation(
    request_id: str,
    venue_id: str,
    card_type: str,
    configuration_found: bool,
    duration_ms: float,
) -> None:
    logging.info(
        "Simulation completed",
        extra={
            "request_id": request_id,
            "venue_id": venue_id,
            "step": "simulation_complete",
            "card_type": card_type,
            "configuration_found": configuration_found,
            "duration_ms": duration_ms,
        },
    )
