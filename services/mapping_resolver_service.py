"""
Column mapping resolver.

Asks Claude which spreadsheet column feeds which product field, based on the
header and a handful of sample rows. Resolved once per import; every data row
is transformed with the same mapping.

The completion call is injectable so the pipeline can run against a
deterministic stub in tests or another provider in production.
"""

import asyncio
import json
import re
from typing import Any, Awaitable, Callable, Optional, Union
import structlog

import anthropic

from config import settings
from models.product_import import (
    CellValue,
    MappingResolution,
    MappingResult,
    ResolvedMapping,
    Transformer,
)

logger = structlog.get_logger(__name__)

# (prompt, json schema) -> parsed object, raw JSON text, or None
CompletionFn = Callable[[str, dict], Awaitable[Union[dict, str, None]]]


def _build_mapping_schema() -> dict:
    """JSON schema of the structured output requested from the model."""
    transformers = [t.value for t in Transformer]
    return {
        "type": "object",
        "properties": {
            "mapping": {
                "type": "object",
                "properties": {
                    "columnMappings": {
                        "type": "object",
                        "description": "Header cell (verbatim) -> mapping rule",
                        "additionalProperties": {
                            "type": "object",
                            "properties": {
                                "field": {"type": "string"},
                                "transformer": {"type": "string", "enum": transformers},
                                "defaultValue": {"type": "string"},
                            },
                            "required": ["field", "transformer"],
                        },
                    },
                    "categoryGuess": {"type": "string"},
                    "brandGuess": {"type": "string"},
                },
                "required": ["columnMappings"],
            },
            "confidence": {"type": "number", "minimum": 0, "maximum": 1},
        },
        "required": ["mapping", "confidence"],
    }


MAPPING_SCHEMA = _build_mapping_schema()


class MappingResolverService:
    """
    Resolve a column mapping from a sample of spreadsheet rows.

    Failures never raise: they come back as MappingResult(success=False)
    with a reason, and the caller decides what to do.
    """

    TOOL_NAME = "submit_column_mapping"

    SYSTEM_PROMPT = (
        "당신은 한국 가전제품 렌탈 서비스의 상품 데이터 담당자입니다. "
        "거래처가 보낸 엑셀 상품 목록의 열 구조를 분석해 카탈로그 스키마로 매핑합니다. "
        "결과는 반드시 submit_column_mapping 도구로 제출하세요."
    )

    TARGET_SCHEMA = """제품 스키마:
- name: 영문 제품명
- nameKo: 한국어 제품명
- brand: 브랜드 (예: 삼성, LG, 코웨이, 쿠쿠)
- monthlyPrice: 월 렌탈료 (원)
- originalPrice: 정상가 또는 출고가 (원)
- categoryId: 제품 카테고리 (냉장고, 세탁기, 에어컨, TV, 전자레인지, 로봇청소기, 정수기)
- description: 제품 설명
- 그 밖의 항목은 specifications(사양)에 들어갑니다. 필드명은 영문 camelCase로 지정하세요.
  (예: modelNumber, energyGrade, capacity)
- 다음 사양 필드는 정해진 형식의 텍스트 열에만 매핑하세요 (transformer는 text):
  - rentalPeriods: 약정 기간별 월 렌탈료 (예: "36개월 29,900원, 60개월 24,900원")
  - maintenanceTiers: 관리 서비스 (예: "방문관리 4개월 9,900원, 자가관리")
  - features: 쉼표로 구분된 주요 기능
  - colors: 쉼표로 구분된 색상 이름"""

    TRANSFORMER_RULES = """transformer 값은 반드시 number, text, category, price 중 하나입니다.
- price: 금액 (쉼표, ₩, 원 기호가 섞여 있을 수 있음)
- number: 금액이 아닌 숫자 (평점, 용량 등)
- category: 제품 카테고리 이름
- text: 그 밖의 모든 텍스트"""

    def __init__(
        self,
        complete: Optional[CompletionFn] = None,
        source: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ):
        """
        Args:
            complete: Completion capability. Defaults to Claude via the Anthropic API.
            source: Provider name reported with the mapping
            timeout_seconds: Bound on the completion call
        """
        self.client = None
        if complete is None:
            if settings.anthropic_configured:
                self.client = anthropic.AsyncAnthropic(
                    api_key=settings.anthropic_api_key,
                    max_retries=0,
                )
            else:
                logger.warning("anthropic_api_key_missing")
            complete = self._complete_with_claude
            source = source or settings.mapping_model
        self._complete = complete
        self.source = source or "custom"
        self.timeout_seconds = timeout_seconds or settings.mapping_timeout_seconds

    def build_prompt(self, sample: list[list[Optional[CellValue]]], file_name: str) -> str:
        """
        Natural-language instruction with the target schema and the sample grid.

        Args:
            sample: Header row followed by sample data rows
            file_name: Display name of the uploaded file
        """
        grid = "\n".join(json.dumps(row, ensure_ascii=False) for row in sample)
        return f"""다음은 가전제품 렌탈 상품 엑셀 파일 "{file_name}"의 헤더와 샘플 행입니다.
각 열을 아래 제품 스키마의 필드에 매핑해주세요.

{self.TARGET_SCHEMA}

{self.TRANSFORMER_RULES}

규칙:
- columnMappings의 키는 헤더의 열 이름과 글자 하나까지 정확히 같아야 합니다.
- 스키마 필드나 사양 항목으로 쓸 수 없는 열은 columnMappings에서 제외하세요.
- 빈 칸에 넣을 기본값이 분명하면 defaultValue에 적어주세요.
- 파일 전체의 카테고리나 브랜드를 추정할 수 있으면 categoryGuess, brandGuess에 적어주세요.
- confidence는 매핑에 대한 확신 정도로 0과 1 사이의 숫자입니다.

샘플 (첫 행은 헤더, 행마다 JSON 배열):
{grid}"""

    async def resolve(
        self,
        sample: list[list[Optional[CellValue]]],
        file_name: str,
    ) -> MappingResult:
        """
        Resolve the column mapping for one import.

        Args:
            sample: Header row followed by up to mapping_sample_rows data rows
            file_name: Display name of the uploaded file

        Returns:
            MappingResult with the resolution, or success=False and a reason
        """
        header = [str(c) for c in sample[0]] if sample else []
        prompt = self.build_prompt(sample, file_name)

        logger.info(
            "mapping_resolution_started",
            file_name=file_name,
            columns=len(header),
            sample_rows=max(len(sample) - 1, 0),
            source=self.source
        )

        try:
            raw = await asyncio.wait_for(
                self._complete(prompt, MAPPING_SCHEMA),
                timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            return self._failure(f"completion call timed out after {self.timeout_seconds:g}s")
        except Exception as e:
            return self._failure(f"completion call failed: {e}", error_type=type(e).__name__)

        if not raw or (isinstance(raw, str) and not raw.strip()):
            return self._failure("completion service returned an empty response")

        try:
            resolution = self._parse_response(raw, header)
        except ValueError as e:
            return self._failure(f"invalid mapping response: {e}")

        logger.info(
            "mapping_resolved",
            file_name=file_name,
            mapped_columns=len(resolution.mapping.column_mappings),
            category_guess=resolution.mapping.category_guess,
            brand_guess=resolution.mapping.brand_guess,
            confidence=resolution.confidence
        )
        return MappingResult(success=True, resolution=resolution, source=self.source)

    def _failure(self, reason: str, **context: Any) -> MappingResult:
        logger.error("mapping_resolution_failed", reason=reason, source=self.source, **context)
        return MappingResult(success=False, error=reason, source=self.source)

    def _parse_response(self, raw: Union[dict, str], header: list[str]) -> MappingResolution:
        """
        Validate the completion output against the mapping contract.

        Columns the model invented (not present in the header) are dropped.

        Raises:
            ValueError: Unparseable JSON or a shape that does not match
                (pydantic's ValidationError is a ValueError)
        """
        if isinstance(raw, str):
            # Remove markdown code blocks if present
            cleaned = raw.strip()
            if cleaned.startswith("```"):
                cleaned = re.sub(r'^```(?:json)?\s*', '', cleaned)
                cleaned = re.sub(r'\s*```$', '', cleaned)
            data = json.loads(cleaned)
        else:
            data = raw

        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")

        resolution = MappingResolution.model_validate(data)

        known = set(header)
        rules = resolution.mapping.column_mappings
        unknown = [column for column in rules if column not in known]
        if not unknown:
            return resolution

        logger.warning("mapping_unknown_columns_dropped", columns=unknown)
        return MappingResolution(
            mapping=ResolvedMapping(
                column_mappings={c: r for c, r in rules.items() if c in known},
                category_guess=resolution.mapping.category_guess,
                brand_guess=resolution.mapping.brand_guess,
            ),
            confidence=resolution.confidence,
        )

    async def _complete_with_claude(self, prompt: str, schema: dict) -> Union[dict, str, None]:
        """
        Call Claude with a forced tool call so the output follows `schema`.

        Returns the tool input, or the text content if the model answered
        in plain text instead.
        """
        if self.client is None:
            raise RuntimeError("Claude API not available. Set ANTHROPIC_API_KEY environment variable.")

        try:
            response = await self.client.messages.create(
                model=settings.mapping_model,
                max_tokens=settings.mapping_max_tokens,
                system=self.SYSTEM_PROMPT,
                tools=[{
                    "name": self.TOOL_NAME,
                    "description": "Submit the resolved spreadsheet column mapping",
                    "input_schema": schema,
                }],
                tool_choice={"type": "tool", "name": self.TOOL_NAME},
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            logger.error("claude_api_error", error=str(e))
            raise

        for block in response.content:
            if block.type == "tool_use" and block.name == self.TOOL_NAME:
                return block.input

        text = "".join(block.text for block in response.content if block.type == "text")
        logger.debug("claude_text_response_received", response_length=len(text))
        return text or None


# Singleton instance
_mapping_resolver: Optional[MappingResolverService] = None


def get_mapping_resolver_service() -> MappingResolverService:
    """Get or create MappingResolverService instance."""
    global _mapping_resolver
    if _mapping_resolver is None:
        _mapping_resolver = MappingResolverService()
    return _mapping_resolver
