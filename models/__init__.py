"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema, FrozenSchema
from models.product_import import (
    CellValue,
    SpecValue,
    Transformer,
    MappingRule,
    ColumnMapping,
    ResolvedMapping,
    MappingResolution,
    MappingResult,
    DraftStatus,
    RentalPeriodTier,
    MaintenanceTier,
    ColorSwatch,
    ProductSpecifications,
    DraftSource,
    ProductDraft,
    ImportStats,
    ImportRowError,
    ImportMappingSummary,
    ImportReport,
    ImportPreviewResponse,
)

__all__ = [
    # Base
    "BaseSchema",
    "FrozenSchema",

    # Column mapping
    "CellValue",
    "SpecValue",
    "Transformer",
    "MappingRule",
    "ColumnMapping",
    "ResolvedMapping",
    "MappingResolution",
    "MappingResult",

    # Drafts
    "DraftStatus",
    "RentalPeriodTier",
    "MaintenanceTier",
    "ColorSwatch",
    "ProductSpecifications",
    "DraftSource",
    "ProductDraft",

    # Report
    "ImportStats",
    "ImportRowError",
    "ImportMappingSummary",
    "ImportReport",
    "ImportPreviewResponse",
]
