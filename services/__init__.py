"""
Business logic services.

Each service handles one stage of the product import pipeline.
"""

from services.category_normalizer import (
    normalize_category,
    category_label,
    is_known_category,
    UNCATEGORIZED,
)
from services.mapping_resolver_service import (
    MappingResolverService,
    get_mapping_resolver_service,
    CompletionFn,
)
from services.row_transformer import transform_row, coerce_number
from services.import_aggregator import ImportResultAggregator
from services.product_import_service import (
    ProductImportService,
    get_product_import_service,
)

__all__ = [
    "normalize_category",
    "category_label",
    "is_known_category",
    "UNCATEGORIZED",
    "MappingResolverService",
    "get_mapping_resolver_service",
    "CompletionFn",
    "transform_row",
    "coerce_number",
    "ImportResultAggregator",
    "ProductImportService",
    "get_product_import_service",
]
