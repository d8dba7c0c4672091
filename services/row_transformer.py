"""
Row transformer.

Applies a resolved column mapping to one spreadsheet row and builds a
ProductDraft. Pure and synchronous; the same mapping is used for every row
of an import.
"""

import math
import re
from typing import Any, Optional
import structlog

from pydantic import ValidationError as PydanticValidationError

from config import settings
from exceptions import FieldCoercionWarning, RowValidationError
from models.product_import import (
    CellValue,
    DraftSource,
    DraftStatus,
    ProductDraft,
    ProductSpecifications,
    ResolvedMapping,
    Transformer,
)
from services.category_normalizer import is_known_category, normalize_category

logger = structlog.get_logger(__name__)

# Target field names from the mapping, lowercased without underscores,
# to ProductDraft attribute names.
FIELD_ALIASES: dict[str, str] = {
    "name": "name",
    "nameko": "name_ko",
    "brand": "brand",
    "description": "description",
    "descriptionko": "description",
    "monthlyprice": "monthly_price",
    "originalprice": "original_price",
    "categoryid": "category_id",
    "category": "category_id",
    "rating": "rating",
}

# Same normalization, to structured ProductSpecifications keys
STRUCTURED_ALIASES: dict[str, str] = {
    "rentalperiods": "rental_periods",
    "maintenancetiers": "maintenance_tiers",
    "features": "features",
    "colors": "colors",
}

IDENTITY_FIELDS = {"name", "name_ko", "brand", "description", "category_id"}
NUMERIC_FIELDS = {"monthly_price", "original_price", "rating"}

# Fields the storefront needs before a draft can be approved
APPROVAL_FIELDS = ("name", "name_ko", "description", "brand", "monthly_price")

MAX_RATING = 5.0

_NON_NUMERIC = re.compile(r"[^0-9.]")
_LEADING_MINUS = re.compile(r"^[^0-9.]*-")

# "29,900" or "29900"; stops before a following ",60개월"
_AMOUNT = r"(\d{1,3}(?:,\d{3})+|\d+)"

# "36개월 29,900원", "60 months: 24900"
_RENTAL_TIER = re.compile(
    r"(\d+)\s*(?:개월|months?)\s*[:\-=/]?\s*₩?\s*" + _AMOUNT,
    re.IGNORECASE
)
_INTERVAL = re.compile(r"(\d+)\s*(?:개월|months?)", re.IGNORECASE)
_FEE = re.compile(_AMOUNT + r"\s*원")

# List separators; a comma inside "9,900" is not one
_LIST_SEPARATOR = re.compile(r"\s*(?:[/;\n]|,(?!\d{3}))\s*")


def canonical_field(field: str) -> Optional[str]:
    """
    ProductDraft attribute for a mapping target, or None for bag fields.

    "nameKo" -> "name_ko"
    "monthly_price" -> "monthly_price"
    "modelNumber" -> None
    """
    return FIELD_ALIASES.get(field.replace("_", "").lower())


def structured_key(field: str) -> Optional[str]:
    """ProductSpecifications structured key for a mapping target, if any."""
    return STRUCTURED_ALIASES.get(field.replace("_", "").lower())


def coerce_number(value: CellValue, column: str, field: str) -> float:
    """
    Parse a currency or number cell.

    Everything except digits and "." is stripped, so "55,000",
    "55000" and "₩55,000원" all give 55000.0. Text with a leading minus
    sign is rejected like a negative number cell.

    Raises:
        FieldCoercionWarning: If the result is not a positive finite number
    """
    if isinstance(value, bool):
        raise FieldCoercionWarning(column, field, value)

    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if _LEADING_MINUS.match(text):
            raise FieldCoercionWarning(column, field, value)
        try:
            number = float(_NON_NUMERIC.sub("", text))
        except ValueError:
            raise FieldCoercionWarning(column, field, value)

    if not math.isfinite(number) or number <= 0:
        raise FieldCoercionWarning(column, field, value)
    return number


def as_text(value: Any) -> str:
    """Cell as trimmed text; 1234.0 -> "1234"."""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _amount(text: str) -> float:
    return float(text.replace(",", ""))


def parse_rental_periods(text: str, column: str, field: str) -> list[dict[str, Any]]:
    """
    Rental tiers from cell text.

    "36개월 29,900원, 60개월 24,900원"
        -> [{"months": 36, "monthly_price": 29900.0}, {"months": 60, "monthly_price": 24900.0}]

    Raises:
        FieldCoercionWarning: If no "<months>개월 <price>" pair is found
    """
    tiers = [
        {"months": int(months), "monthly_price": _amount(price)}
        for months, price in _RENTAL_TIER.findall(text)
        if int(months) > 0 and _amount(price) > 0
    ]
    if not tiers:
        raise FieldCoercionWarning(column, field, text, expected="rental periods like '36개월 29,900원'")
    return tiers


def parse_maintenance_tiers(text: str, column: str, field: str) -> list[dict[str, Any]]:
    """
    Maintenance plans from cell text.

    "방문관리 4개월 9,900원, 자가관리"
        -> [{"name": "방문관리", "interval_months": 4, "monthly_fee": 9900.0},
            {"name": "자가관리"}]

    Raises:
        FieldCoercionWarning: If the text names no plan
    """
    tiers = []
    for part in _LIST_SEPARATOR.split(text):
        if not part:
            continue
        tier: dict[str, Any] = {"name": re.split(r"\d", part, maxsplit=1)[0].strip(" :-") or part}
        interval = _INTERVAL.search(part)
        if interval and int(interval.group(1)) > 0:
            tier["interval_months"] = int(interval.group(1))
        fee = _FEE.search(part)
        if fee:
            tier["monthly_fee"] = _amount(fee.group(1))
        tiers.append(tier)

    if not tiers:
        raise FieldCoercionWarning(column, field, text, expected="maintenance plans")
    return tiers


def apply_transformer(
    transformer: Transformer,
    value: CellValue,
    column: str,
    field: str,
    default_category_id: Optional[str] = None,
) -> Any:
    """Run one column's transformer on a non-empty cell."""
    if transformer in (Transformer.NUMBER, Transformer.PRICE):
        return coerce_number(value, column, field)
    if transformer == Transformer.CATEGORY:
        return normalize_category(as_text(value), default_category_id)
    return as_text(value)


def structured_value(key: str, value: Any, column: str, field: str) -> Any:
    """Shape a transformed cell for a structured bag key."""
    text = as_text(value)
    if key == "rental_periods":
        return parse_rental_periods(text, column, field)
    if key == "maintenance_tiers":
        return parse_maintenance_tiers(text, column, field)
    # features and colors split comma separated text themselves
    return text


def transform_row(
    record: dict[str, Optional[CellValue]],
    mapping: ResolvedMapping,
    *,
    file_name: str,
    sheet_name: str,
    row_index: int,
    default_rating: Optional[float] = None,
    default_category_id: Optional[str] = None,
) -> Optional[ProductDraft]:
    """
    Build a ProductDraft from one header-keyed row.

    Args:
        record: Column name -> raw cell (None for empty)
        mapping: Mapping resolved for the whole import
        file_name: Source file display name
        sheet_name: Source worksheet name
        row_index: 1-based spreadsheet row number
        default_rating: Rating when the row has none (settings.default_rating)
        default_category_id: Id for unmatched category text

    Returns:
        ProductDraft, or None if every cell in the row is empty

    Raises:
        RowValidationError: If the assembled draft does not match the
            product draft shape
    """
    if all(value is None for value in record.values()):
        return None

    rating_default = default_rating if default_rating is not None else settings.default_rating
    rules = mapping.column_mappings

    fields: dict[str, Any] = {}
    structured: dict[str, Any] = {}
    unmapped: dict[str, Any] = {}
    mapped_extras: dict[str, Any] = {}
    errors: list[str] = []

    for column, value in record.items():
        rule = rules.get(column)

        if value is None and rule is not None and rule.default_value:
            value = rule.default_value
        if value is None:
            continue

        if rule is None:
            unmapped[column] = value
            continue

        target = canonical_field(rule.field)
        spec_key = structured_key(rule.field) if target is None else None

        try:
            transformed = apply_transformer(
                rule.transformer, value, column, rule.field, default_category_id
            )
            if spec_key is not None:
                transformed = structured_value(spec_key, transformed, column, rule.field)
        except FieldCoercionWarning as warning:
            logger.debug("field_coercion_failed", row=row_index, column=column, value=str(value))
            errors.append(warning.message)
            continue

        if target in IDENTITY_FIELDS:
            text = as_text(transformed)
            if text:
                fields[target] = text
        elif target in NUMERIC_FIELDS:
            if not isinstance(transformed, (int, float)) or isinstance(transformed, bool) or transformed <= 0:
                errors.append(f"{column}: '{value}' is not a number for {rule.field}")
            elif target == "rating" and transformed > MAX_RATING:
                errors.append(f"{column}: rating '{value}' is above {MAX_RATING:g} for {rule.field}")
            else:
                fields[target] = float(transformed)
        elif spec_key is not None:
            if transformed:
                structured[spec_key] = transformed
        else:
            if isinstance(transformed, str) and not transformed:
                continue
            mapped_extras[rule.field] = transformed

    if "category_id" not in fields and mapping.category_guess:
        fields["category_id"] = normalize_category(mapping.category_guess, default_category_id)
    if "brand" not in fields and mapping.brand_guess:
        fields["brand"] = mapping.brand_guess
    if "rating" not in fields:
        fields["rating"] = rating_default

    # Mapped fields win over an unmapped column with the same name
    extras = {**unmapped, **mapped_extras}

    try:
        draft = ProductDraft(
            **fields,
            specifications=ProductSpecifications(**structured, extras=extras),
            source=DraftSource(
                file_name=file_name,
                sheet_name=sheet_name,
                row_index=row_index,
                original_row=dict(record),
            ),
            status=review_status(fields, errors),
            errors=errors,
        )
    except PydanticValidationError as e:
        raise RowValidationError(
            row=row_index,
            message=describe_validation_error(e),
            details={"errors": e.errors(include_url=False, include_context=False)}
        )

    return draft


def review_status(fields: dict[str, Any], errors: list[str]) -> DraftStatus:
    """
    Initial review status of a draft.

    needs_review when the draft cannot be approved as-is: inline coercion
    errors, any of name, name_ko, description, brand or monthly price
    missing, or no recognized category.
    """
    if errors:
        return DraftStatus.NEEDS_REVIEW
    if any(not fields.get(name) for name in APPROVAL_FIELDS):
        return DraftStatus.NEEDS_REVIEW
    if not is_known_category(fields.get("category_id")):
        return DraftStatus.NEEDS_REVIEW
    return DraftStatus.PENDING


def describe_validation_error(error: PydanticValidationError) -> str:
    """One line per pydantic error: "brand: String should have at most 100 characters"."""
    parts = []
    for item in error.errors(include_url=False):
        location = ".".join(str(part) for part in item["loc"])
        parts.append(f"{location}: {item['msg']}" if location else item["msg"])
    return "; ".join(parts)
