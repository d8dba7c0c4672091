"""
Test data factories.

Builds spreadsheets in memory and stands in for the completion service.
"""

import asyncio
from io import BytesIO
from typing import Optional, Union

import pandas as pd


SAMPLE_HEADER = ["제품명", "브랜드", "월 렌탈료", "모델명", "분류"]

SAMPLE_ROWS = [
    ["AI 프리미엄 냉장고", "삼성", "55,000", "RQ1234", "냉장고"],
    ["슬림 로봇청소기", "LG", "33,000", "RV987", "로봇청소기"],
]


def build_xlsx(
    rows: list[list],
    sheet_name: str = "제품목록",
    empty_sheet_first: bool = False,
) -> bytes:
    """
    Create an .xlsx file in memory.

    Rows are written as-is (no pandas header row); None becomes an empty cell.
    """
    output = BytesIO()

    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        if empty_sheet_first:
            pd.DataFrame().to_excel(writer, sheet_name="비어있음", index=False, header=False)
        pd.DataFrame(rows, dtype=object).to_excel(writer, sheet_name=sheet_name, index=False, header=False)

    return output.getvalue()


def mapping_response(
    column_mappings: Optional[dict] = None,
    category_guess: Optional[str] = None,
    brand_guess: Optional[str] = None,
    confidence: float = 0.9,
) -> dict:
    """Structured output in the shape the completion service returns."""
    mapping: dict = {
        "columnMappings": column_mappings if column_mappings is not None else {
            "제품명": {"field": "nameKo", "transformer": "text"},
            "브랜드": {"field": "brand", "transformer": "text"},
            "월 렌탈료": {"field": "monthlyPrice", "transformer": "price"},
        }
    }
    if category_guess is not None:
        mapping["categoryGuess"] = category_guess
    if brand_guess is not None:
        mapping["brandGuess"] = brand_guess
    return {"mapping": mapping, "confidence": confidence}


class StubCompletion:
    """
    Deterministic replacement for the completion call.

    Usage:
        stub = StubCompletion(mapping_response())
        service = MappingResolverService(complete=stub, source="stub")
    """

    def __init__(
        self,
        response: Union[dict, str, None] = None,
        error: Optional[Exception] = None,
        delay: float = 0,
    ):
        self.response = response
        self.error = error
        self.delay = delay
        self.calls: list[tuple[str, dict]] = []

    async def __call__(self, prompt: str, schema: dict) -> Union[dict, str, None]:
        self.calls.append((prompt, schema))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.response
