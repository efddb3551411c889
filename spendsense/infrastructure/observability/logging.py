"""Structured JSON logging for persona and eligibility decisions"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Sequence

from pythonjsonlogger import jsonlogger

from spendsense.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = settings.log_level) -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_persona_assignment(
    user_id: str,
    persona_id: str,
    matching_persona_ids: Sequence[str],
    failed_families: Sequence[str],
    decision_trace: Dict[str, Any],
) -> None:
    """Log structured persona assignment for audit"""
    logging.info(
        "Persona assigned",
        extra={
            "user_id": user_id,
            "step": "persona_assigned",
            "persona_id": persona_id,
            "matching_personas": list(matching_persona_ids),
            "failed_families": list(failed_families),
            "decision_trace": decision_trace,
        },
    )


def log_eligibility_decision(
    user_id: str,
    offer_id: str,
    outcome: str,
    disqualifiers: Sequence[str],
) -> None:
    """Log structured eligibility outcome (eligible | soft_fail | hard_block)"""
    logging.info(
        "Eligibility checked",
        extra={
            "user_id": user_id,
            "step": "eligibility_decision",
            "offer_id": offer_id,
            "eligibility_outcome": outcome,
            "disqualifiers": list(disqualifiers),
        },
    )
