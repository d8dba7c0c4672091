"""
Shared test fixtures.
"""

import sys
from pathlib import Path

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

import pytest
from unittest.mock import patch

from models.product_import import MappingRule, ResolvedMapping, Transformer
from services.mapping_resolver_service import MappingResolverService
from services.product_import_service import ProductImportService
from tests.factories import (
    SAMPLE_HEADER,
    SAMPLE_ROWS,
    StubCompletion,
    build_xlsx,
    mapping_response,
)


# ===================
# MAPPING FIXTURES
# ===================

@pytest.fixture
def sample_mapping() -> ResolvedMapping:
    """제품명/브랜드/월 렌탈료 mapped; 모델명 and 분류 left for the bag."""
    return ResolvedMapping(
        column_mappings={
            "제품명": MappingRule(field="nameKo", transformer=Transformer.TEXT),
            "브랜드": MappingRule(field="brand", transformer=Transformer.TEXT),
            "월 렌탈료": MappingRule(field="monthlyPrice", transformer=Transformer.PRICE),
        }
    )


@pytest.fixture
def stub_completion() -> StubCompletion:
    """Completion stub returning the sample mapping."""
    return StubCompletion(mapping_response())


@pytest.fixture
def stub_resolver(stub_completion) -> MappingResolverService:
    """Resolver wired to the stub completion."""
    return MappingResolverService(complete=stub_completion, source="stub")


@pytest.fixture
def import_service(stub_resolver) -> ProductImportService:
    """Import service wired to the stub resolver."""
    return ProductImportService(resolver=stub_resolver)


# ===================
# SPREADSHEET FIXTURES
# ===================

@pytest.fixture
def sample_xlsx() -> bytes:
    """Header plus two appliance rows."""
    return build_xlsx([SAMPLE_HEADER] + SAMPLE_ROWS)


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client_with_stub(import_service):
    """
    FastAPI test client whose imports use the stub completion.

    Usage:
        def test_endpoint(test_client_with_stub, sample_xlsx):
            response = test_client_with_stub.post("/api/product-imports/preview", ...)
    """
    from fastapi.testclient import TestClient
    from main import app

    with patch("routes.product_imports.get_product_import_service", return_value=import_service):
        yield TestClient(app)
