"""Domain services - Business logic that doesn't fit in entities."""

from src.domain.services.health_calculator import HealthCalculator
from src.domain.services.service_processor import (
    ServiceProcessor,
    normalize_service_name,
)
from src.domain.services.service_validator import ServiceValidator

__all__ = [
    "ServiceValidator",
    "ServiceProcessor",
    "normalize_service_name",
    "HealthCalculator",
]
