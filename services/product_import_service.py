"""
Product import service.

Runs the spreadsheet-to-catalog pipeline:
    read sheet -> resolve mapping (once) -> transform each row -> report

Fatal errors (unreadable sheet, unresolved mapping) raise and no report is
produced. Row errors are recorded in the report and the import continues.
"""

from typing import Optional
import structlog

from config import settings
from exceptions import MappingResolutionError, RowValidationError
from models.product_import import ImportMappingSummary, ImportReport, MappingResult
from parsers.sheet_reader import RawSheet, read_sheet
from services.category_normalizer import category_label, normalize_category
from services.import_aggregator import ImportResultAggregator
from services.mapping_resolver_service import (
    MappingResolverService,
    get_mapping_resolver_service,
)
from services.row_transformer import transform_row

logger = structlog.get_logger(__name__)


class ProductImportService:
    """
    Import vendor spreadsheets as product drafts.

    Each call owns its sheet, mapping and accumulator, so concurrent imports
    do not share state.
    """

    def __init__(self, resolver: Optional[MappingResolverService] = None):
        self.resolver = resolver or get_mapping_resolver_service()

    async def import_products(self, payload: bytes, file_name: str) -> ImportReport:
        """
        Import one spreadsheet.

        Args:
            payload: Spreadsheet file content
            file_name: Display name of the upload

        Returns:
            ImportReport with drafts, row errors and stats

        Raises:
            MalformedInputError: If the sheet has no header plus data rows
            MappingResolutionError: If the column mapping could not be resolved
        """
        logger.info("product_import_started", file_name=file_name, size=len(payload))

        sheet = read_sheet(payload, file_name)

        result = await self.resolver.resolve(
            sheet.sample(settings.mapping_sample_rows),
            file_name
        )
        if not result.success or result.resolution is None:
            raise MappingResolutionError(
                reason=result.error or "no mapping returned",
                details={"file_name": file_name, "source": result.source}
            )

        report = self.transform_sheet(sheet, result, file_name)

        logger.info(
            "product_import_completed",
            file_name=file_name,
            sheet=report.sheet_name,
            total_rows=report.stats.total_rows,
            successfully_parsed=report.stats.successfully_parsed,
            errors=report.stats.errors
        )
        return report

    def transform_sheet(
        self,
        sheet: RawSheet,
        result: MappingResult,
        file_name: str,
    ) -> ImportReport:
        """
        Apply a resolved mapping to every data row, in file order.

        A failing row is recorded with its raw data and never stops
        the rows after it.
        """
        mapping = result.resolution.mapping
        aggregator = ImportResultAggregator(total_rows=len(sheet.rows) - 1)

        for data_index in range(len(sheet.data_rows)):
            row_number = sheet.row_number(data_index)
            record = sheet.record(data_index)

            try:
                draft = transform_row(
                    record,
                    mapping,
                    file_name=file_name,
                    sheet_name=sheet.sheet_name,
                    row_index=row_number,
                    default_rating=settings.default_rating,
                    default_category_id=settings.default_category_id,
                )
            except RowValidationError as e:
                logger.warning("row_validation_failed", row=row_number, error=e.message)
                aggregator.add_error(row_number, e.message, record)
                continue
            except Exception as e:
                logger.error(
                    "row_transform_failed",
                    row=row_number,
                    error=str(e),
                    error_type=type(e).__name__
                )
                aggregator.add_error(row_number, str(e), record)
                continue

            if draft is None:
                continue
            aggregator.add_draft(draft)

        if aggregator.skipped:
            logger.debug("blank_rows_skipped", count=aggregator.skipped)

        return aggregator.to_report(
            file_name=file_name,
            sheet_name=sheet.sheet_name,
            mapping=self._mapping_summary(result),
        )

    def _mapping_summary(self, result: MappingResult) -> ImportMappingSummary:
        """Mapping details shown to the operator next to the drafts."""
        mapping = result.resolution.mapping
        resolved_id = (
            normalize_category(mapping.category_guess, settings.default_category_id)
            if mapping.category_guess else None
        )
        return ImportMappingSummary(
            column_mappings=mapping.column_mappings,
            category_guess=mapping.category_guess,
            brand_guess=mapping.brand_guess,
            confidence=result.resolution.confidence,
            resolved_category_id=resolved_id,
            resolved_category_label=category_label(resolved_id),
            source=result.source,
        )


# Singleton instance
_product_import_service: Optional[ProductImportService] = None


def get_product_import_service() -> ProductImportService:
    """Get or create ProductImportService instance."""
    global _product_import_service
    if _product_import_service is None:
        _product_import_service = ProductImportService()
    return _product_import_service
