"""
Import result aggregator.

Collects drafts and row errors in file order and freezes them into an
ImportReport once every row has been visited.
"""

from dataclasses import dataclass, field
from typing import Optional

from models.product_import import (
    CellValue,
    ImportMappingSummary,
    ImportReport,
    ImportRowError,
    ImportStats,
    ProductDraft,
)


@dataclass
class ImportResultAggregator:
    """
    Accumulator owned by a single import call.

    total_rows is fixed up front (sheet rows minus the header); blank rows
    are skipped by the caller and counted in neither successes nor errors.
    """
    total_rows: int
    drafts: list[ProductDraft] = field(default_factory=list)
    errors: list[ImportRowError] = field(default_factory=list)

    @property
    def successfully_parsed(self) -> int:
        return len(self.drafts)

    @property
    def skipped(self) -> int:
        """Rows counted in neither drafts nor errors (blank rows)."""
        return self.total_rows - len(self.drafts) - len(self.errors)

    def add_draft(self, draft: ProductDraft) -> None:
        """Record a validated draft."""
        self.drafts.append(draft)

    def add_error(
        self,
        row: int,
        error: str,
        original_data: Optional[dict[str, Optional[CellValue]]] = None,
    ) -> None:
        """Record a row that failed, with the raw row for diagnosis."""
        self.errors.append(ImportRowError(
            row=row,
            error=error,
            original_data=original_data or {},
        ))

    def to_report(
        self,
        file_name: str,
        sheet_name: str,
        mapping: ImportMappingSummary,
    ) -> ImportReport:
        """Freeze the accumulated results."""
        return ImportReport(
            file_name=file_name,
            sheet_name=sheet_name,
            mapping=mapping,
            drafts=list(self.drafts),
            stats=ImportStats(
                total_rows=self.total_rows,
                successfully_parsed=len(self.drafts),
                errors=len(self.errors),
            ),
            errors=list(self.errors),
        )
