"""
Product import models.

Data structures for the spreadsheet-to-catalog importer: the column mapping
contract, the product draft with its specification bag, and the import report.
"""

from enum import Enum
from typing import Optional, Union

from pydantic import Field, field_validator, model_serializer

from models.base import BaseSchema, FrozenSchema


# Raw spreadsheet cell. bool comes first so TRUE/FALSE cells are not read as ints.
CellValue = Union[bool, int, float, str]

# Scalar values allowed in the free-form specification bag
SpecValue = Union[bool, int, float, str]


# ===================
# COLUMN MAPPING
# ===================

class Transformer(str, Enum):
    """Per-column coercion rule."""
    NUMBER = "number"
    TEXT = "text"
    CATEGORY = "category"
    PRICE = "price"


class MappingRule(FrozenSchema):
    """How one spreadsheet column feeds one product field."""

    field: str = Field(..., min_length=1, description="Target product field name")
    transformer: Transformer
    default_value: Optional[str] = Field(
        None,
        description="Value used when the cell is empty"
    )


# Column name (verbatim header cell) -> rule
ColumnMapping = dict[str, MappingRule]


class ResolvedMapping(FrozenSchema):
    """Mapping inferred once per import from a sample of rows."""

    column_mappings: ColumnMapping = Field(default_factory=dict)
    category_guess: Optional[str] = None
    brand_guess: Optional[str] = None

    @field_validator("category_guess", "brand_guess", mode="before")
    @classmethod
    def blank_guess_is_none(cls, v):
        """Empty guesses carry no information."""
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v


class MappingResolution(FrozenSchema):
    """Structured output requested from the completion service."""

    mapping: ResolvedMapping
    confidence: float = Field(..., ge=0.0, le=1.0)


class MappingResult(FrozenSchema):
    """Outcome of a mapping resolution attempt."""

    success: bool
    resolution: Optional[MappingResolution] = None
    error: Optional[str] = None
    source: Optional[str] = Field(None, description="Provider that produced the mapping")


# ===================
# PRODUCT DRAFT
# ===================

class DraftStatus(str, Enum):
    """Review status of an imported draft."""
    PENDING = "pending"
    NEEDS_REVIEW = "needs_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class RentalPeriodTier(FrozenSchema):
    """Monthly price for a given contract length."""
    months: int = Field(..., gt=0)
    monthly_price: float = Field(..., gt=0)


class MaintenanceTier(FrozenSchema):
    """Maintenance/care plan offered with the rental."""
    name: str = Field(..., min_length=1)
    interval_months: Optional[int] = Field(None, gt=0)
    monthly_fee: Optional[float] = Field(None, ge=0)


class ColorSwatch(FrozenSchema):
    """Color option for a product."""
    name: str = Field(..., min_length=1)
    hex: Optional[str] = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$")


def _split_list(value: str) -> list[str]:
    return [part.strip() for part in value.replace("\n", ",").split(",") if part.strip()]


class ProductSpecifications(FrozenSchema):
    """
    Specification bag.

    Structured keys (rental periods, maintenance tiers, features, colors)
    have a nested shape and are only filled from mapped fields. Everything
    else lives in `extras` under its own name, value verbatim, and is
    flattened next to the structured keys on output.
    """

    rental_periods: Optional[list[RentalPeriodTier]] = None
    maintenance_tiers: Optional[list[MaintenanceTier]] = None
    features: Optional[list[str]] = None
    colors: Optional[list[ColorSwatch]] = None
    extras: dict[str, SpecValue] = Field(default_factory=dict)

    @field_validator("features", mode="before")
    @classmethod
    def split_features(cls, v):
        """Spreadsheet cells list features as comma separated text."""
        if isinstance(v, str):
            return _split_list(v)
        return v

    @field_validator("colors", mode="before")
    @classmethod
    def split_colors(cls, v):
        """"화이트, 블랙" -> [{"name": "화이트"}, {"name": "블랙"}]"""
        if isinstance(v, str):
            return [{"name": name} for name in _split_list(v)]
        return v

    @model_serializer(mode="wrap")
    def flatten_extras(self, handler):
        # A set structured key wins over an extra of the same name
        data = handler(self)
        extras = data.pop("extras", None) or {}
        structured = {key: value for key, value in data.items() if value is not None}
        return {**extras, **structured}

    def as_dict(self) -> dict[str, object]:
        """Bag contents without unset structured keys."""
        return self.model_dump(by_alias=True, exclude_none=True)


class DraftSource(FrozenSchema):
    """Where a draft came from."""

    file_name: str
    sheet_name: str
    row_index: int = Field(..., ge=1, description="1-based spreadsheet row number")
    original_row: dict[str, Optional[CellValue]] = Field(default_factory=dict)


class ProductDraft(FrozenSchema):
    """
    Unapproved catalog product produced by the importer.

    All scalar fields are optional; a reviewer completes missing ones
    before approval.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    name_ko: Optional[str] = Field(None, min_length=1, max_length=200)
    brand: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    monthly_price: Optional[float] = Field(None, gt=0)
    original_price: Optional[float] = Field(None, gt=0)
    category_id: Optional[str] = Field(None, min_length=1)
    rating: Optional[float] = Field(None, gt=0, le=5)
    specifications: ProductSpecifications = Field(default_factory=ProductSpecifications)
    source: DraftSource
    status: DraftStatus = DraftStatus.PENDING
    errors: list[str] = Field(default_factory=list)


# ===================
# IMPORT REPORT
# ===================

class ImportStats(FrozenSchema):
    """Row counters for one import."""
    total_rows: int = Field(..., ge=0)
    successfully_parsed: int = Field(0, ge=0)
    errors: int = Field(0, ge=0)


class ImportRowError(FrozenSchema):
    """A data row that could not be turned into a draft."""
    row: int = Field(..., ge=1)
    error: str
    original_data: dict[str, Optional[CellValue]] = Field(default_factory=dict)


class ImportMappingSummary(FrozenSchema):
    """The mapping that was applied to every row of the import."""

    column_mappings: ColumnMapping = Field(default_factory=dict)
    category_guess: Optional[str] = None
    brand_guess: Optional[str] = None
    confidence: float = Field(..., ge=0.0, le=1.0)
    resolved_category_id: Optional[str] = None
    resolved_category_label: Optional[str] = None
    source: Optional[str] = None


class ImportReport(FrozenSchema):
    """Everything one import produced, returned to the caller."""

    file_name: str
    sheet_name: str
    mapping: ImportMappingSummary
    drafts: list[ProductDraft] = Field(default_factory=list)
    stats: ImportStats
    errors: list[ImportRowError] = Field(default_factory=list)


class ImportPreviewResponse(BaseSchema):
    """Response for an uploaded spreadsheet awaiting review."""
    preview_id: str
    report: ImportReport
