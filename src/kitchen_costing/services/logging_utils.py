"""Structured outcome logging for the service layer.

Service modules log one record per noteworthy outcome, with the message
"<operation>: <outcome>" and the identifying values attached to the record
as attributes, so handlers can filter on them without parsing text.

Usage:
    from kitchen_costing.services.logging_utils import get_service_logger, log_operation

    logger = get_service_logger(__name__)
    log_operation(logger, "clone_recipe", "success", source_recipe_id=12, target_user_id=4)
"""

import logging
from typing import Any

SERVICE_LOGGER_PREFIX = "kitchen_costing.services"


def get_service_logger(name: str) -> logging.Logger:
    """
    Logger named under kitchen_costing.services for a module.

    Only the last dotted part of name is kept.

    Example:
        >>> get_service_logger("kitchen_costing.services.recipe_clone_service").name
        'kitchen_costing.services.recipe_clone_service'
    """
    return logging.getLogger(f"{SERVICE_LOGGER_PREFIX}.{name.rsplit('.', 1)[-1]}")


def log_operation(
    logger: logging.Logger,
    operation: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """
    Emit "<operation>: <outcome>" with context as record attributes.

    Per-item detail (skipped duplicates, reused rows) goes at DEBUG,
    ignored input at WARNING, failures at ERROR.
    """
    extra = {"operation": operation, "outcome": outcome, **context}
    logger.log(level, f"{operation}: {outcome}", extra=extra)
