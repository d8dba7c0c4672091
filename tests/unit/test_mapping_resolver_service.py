"""
Unit tests for the column mapping resolver.

Run: pytest tests/unit/test_mapping_resolver_service.py -v
"""

import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from models.product_import import Transformer
from services.mapping_resolver_service import MappingResolverService, MAPPING_SCHEMA
from tests.factories import SAMPLE_HEADER, SAMPLE_ROWS, StubCompletion, mapping_response


SAMPLE = [SAMPLE_HEADER] + SAMPLE_ROWS


def resolve(service: MappingResolverService, sample=None):
    return asyncio.run(service.resolve(sample or SAMPLE, "sample-products.xlsx"))


def stub_service(response=None, error=None, delay=0, timeout_seconds=None):
    stub = StubCompletion(response, error=error, delay=delay)
    service = MappingResolverService(complete=stub, source="stub", timeout_seconds=timeout_seconds)
    return service, stub


# ===================
# PROMPT
# ===================

class TestBuildPrompt:
    """Tests for the mapping prompt."""

    def test_prompt_contains_sample_rows(self):
        """Header and sample rows are embedded as JSON arrays, Korean unescaped."""
        service, _ = stub_service(mapping_response())

        prompt = service.build_prompt(SAMPLE, "sample-products.xlsx")

        assert json.dumps(SAMPLE_HEADER, ensure_ascii=False) in prompt
        assert "AI 프리미엄 냉장고" in prompt
        assert "sample-products.xlsx" in prompt

    def test_prompt_lists_transformers(self):
        service, _ = stub_service(mapping_response())

        prompt = service.build_prompt(SAMPLE, "sample-products.xlsx")

        for transformer in Transformer:
            assert transformer.value in prompt

    def test_prompt_describes_structured_formats(self):
        """Structured specification fields come with the text format they accept."""
        service, _ = stub_service(mapping_response())

        prompt = service.build_prompt(SAMPLE, "sample-products.xlsx")

        assert "rentalPeriods: 약정 기간별 월 렌탈료 (예: \"36개월 29,900원" in prompt
        assert "maintenanceTiers" in prompt

    def test_schema_passed_to_completion(self):
        """The completion receives the structured-output schema."""
        service, stub = stub_service(mapping_response())

        resolve(service)

        assert len(stub.calls) == 1
        assert stub.calls[0][1] == MAPPING_SCHEMA


# ===================
# SUCCESSFUL RESOLUTION
# ===================

class TestResolveSuccess:
    """Tests for valid completion output."""

    def test_structured_response(self):
        """A parsed object is validated into a resolution."""
        service, _ = stub_service(mapping_response(category_guess="냉장고", brand_guess="삼성"))

        result = resolve(service)

        assert result.success is True
        assert result.source == "stub"
        mapping = result.resolution.mapping
        assert mapping.column_mappings["월 렌탈료"].field == "monthlyPrice"
        assert mapping.column_mappings["월 렌탈료"].transformer == Transformer.PRICE
        assert mapping.category_guess == "냉장고"
        assert mapping.brand_guess == "삼성"
        assert result.resolution.confidence == 0.9

    def test_fenced_json_text(self):
        """JSON wrapped in a markdown code block is accepted."""
        text = "```json\n" + json.dumps(mapping_response(), ensure_ascii=False) + "\n```"
        service, _ = stub_service(text)

        result = resolve(service)

        assert result.success is True
        assert set(result.resolution.mapping.column_mappings) == {"제품명", "브랜드", "월 렌탈료"}

    def test_default_value_kept(self):
        response = mapping_response(column_mappings={
            "브랜드": {"field": "brand", "transformer": "text", "defaultValue": "코웨이"},
        })
        service, _ = stub_service(response)

        result = resolve(service)

        assert result.resolution.mapping.column_mappings["브랜드"].default_value == "코웨이"

    def test_unknown_columns_dropped(self):
        """Columns missing from the header are removed from the mapping."""
        response = mapping_response(column_mappings={
            "제품명": {"field": "nameKo", "transformer": "text"},
            "출시일": {"field": "releaseDate", "transformer": "text"},
        })
        service, _ = stub_service(response)

        result = resolve(service)

        assert result.success is True
        assert list(result.resolution.mapping.column_mappings) == ["제품명"]

    def test_blank_guesses_become_none(self):
        service, _ = stub_service(mapping_response(category_guess="  ", brand_guess=""))

        result = resolve(service)

        assert result.resolution.mapping.category_guess is None
        assert result.resolution.mapping.brand_guess is None


# ===================
# FAILURES
# ===================

class TestResolveFailure:
    """Failures come back as unsuccessful results, never as exceptions."""

    @pytest.mark.parametrize("response", [None, "", "   ", {}])
    def test_empty_response(self, response):
        service, _ = stub_service(response)

        result = resolve(service)

        assert result.success is False
        assert result.resolution is None
        assert "empty" in result.error

    def test_completion_error(self):
        """Network errors are reported with their message."""
        service, _ = stub_service(error=ConnectionError("connection reset"))

        result = resolve(service)

        assert result.success is False
        assert "connection reset" in result.error

    def test_timeout(self):
        """A slow completion is cut off."""
        service, _ = stub_service(mapping_response(), delay=1, timeout_seconds=0.01)

        result = resolve(service)

        assert result.success is False
        assert "timed out" in result.error

    @pytest.mark.parametrize("response", [
        mapping_response(column_mappings={"제품명": {"field": "nameKo", "transformer": "date"}}),
        mapping_response(confidence=1.5),
        {"confidence": 0.8},
        "not json at all",
        "[1, 2, 3]",
    ])
    def test_invalid_response(self, response):
        """Output that breaks the mapping contract is rejected."""
        service, _ = stub_service(response)

        result = resolve(service)

        assert result.success is False
        assert result.error.startswith("invalid mapping response")


# ===================
# CLAUDE COMPLETION
# ===================

class TestClaudeCompletion:
    """Tests for the default Anthropic-backed completion."""

    def make_service(self, content: list) -> MappingResolverService:
        service = MappingResolverService(complete=None, source="claude-test")
        service.client = MagicMock()
        service.client.messages.create = AsyncMock(return_value=SimpleNamespace(content=content))
        return service

    def test_tool_use_input_returned(self):
        """The forced tool call's input is the structured output."""
        block = SimpleNamespace(
            type="tool_use",
            name=MappingResolverService.TOOL_NAME,
            input=mapping_response(),
        )
        service = self.make_service([block])

        result = resolve(service)

        assert result.success is True
        assert result.source == "claude-test"
        kwargs = service.client.messages.create.call_args.kwargs
        assert kwargs["tool_choice"] == {"type": "tool", "name": MappingResolverService.TOOL_NAME}
        assert kwargs["tools"][0]["input_schema"] == MAPPING_SCHEMA

    def test_text_fallback(self):
        """A plain-text answer is parsed as JSON."""
        block = SimpleNamespace(type="text", text=json.dumps(mapping_response()))
        service = self.make_service([block])

        result = resolve(service)

        assert result.success is True

    def test_missing_client(self):
        """Without an API key the resolution fails with a clear reason."""
        service = MappingResolverService(complete=None, source="claude-test")
        service.client = None

        result = resolve(service)

        assert result.success is False
        assert "ANTHROPIC_API_KEY" in result.error
