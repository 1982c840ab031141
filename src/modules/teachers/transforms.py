"""Normalise assigned-teacher records returned by the backend."""

import logging
from collections.abc import Mapping, Sequence
from datetime import date
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from src.modules.teachers.schemas import AssignedClass, ClassStatus

logger = logging.getLogger(__name__)


def _minimal_class(item: Any, today: date) -> AssignedClass:
    source = item if isinstance(item, Mapping) else {}
    return AssignedClass(
        id=str(source.get("id") or "unknown"),
        assigned_date=today,
        batch_course_schedule_id=str(source.get("batch_course_schedule_id") or "unknown"),
        status=ClassStatus.PENDING,
    )


def transform_assigned_classes(data: Any, today: date | None = None) -> list[AssignedClass]:
    """
    Validate each record; one that cannot be read becomes a minimal pending
    class with zero amounts so the rest of the list still renders.
    """
    if not isinstance(data, Sequence) or isinstance(data, (str, bytes)):
        logger.error("Invalid assigned classes payload: %s", type(data).__name__)
        return []
    today = today or date.today()
    classes = []
    for item in data:
        try:
            classes.append(AssignedClass.model_validate(item))
        except PydanticValidationError as e:
            logger.warning("Error transforming assigned class: %s", e.errors()[:1])
            classes.append(_minimal_class(item, today))
    return classes
