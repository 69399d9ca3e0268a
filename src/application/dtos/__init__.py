"""Application layer DTOs.

This package contains data transfer objects (DTOs) for the application layer.
Uses dataclasses (not Pydantic) per Clean Architecture principles.
"""

from src.application.dtos.service_catalog_dto import (
    ServiceDeletionResult,
    ServiceHistoryResult,
    ServiceMutationResult,
)

__all__ = [
    "ServiceMutationResult",
    "ServiceDeletionResult",
    "ServiceHistoryResult",
]
