"""
Unit tests for the import models.

Run: pytest tests/unit/test_models.py -v
"""

from models.base import BaseSchema, FrozenSchema
from models.product_import import MappingRule, ProductSpecifications


class TestBaseSchema:
    """Tests for the shared schema configuration."""

    def test_accepts_alias_and_field_name(self):
        by_alias = MappingRule.model_validate({"field": "brand", "transformer": "text", "defaultValue": "LG"})
        by_name = MappingRule(field="brand", transformer="text", default_value="LG")

        assert by_alias == by_name

    def test_plain_models_only(self):
        """Schemas validate dicts and keyword arguments, not arbitrary objects."""
        assert "from_attributes" not in BaseSchema.model_config
        assert "from_attributes" not in FrozenSchema.model_config
        assert FrozenSchema.model_config["frozen"] is True


class TestSpecificationBag:
    """Tests for the bag's wire shape."""

    def test_extras_flattened_on_output(self):
        """Scalar entries sit next to structured keys, unset keys are dropped."""
        bag = ProductSpecifications(features="자동 제빙, 메탈 쿨링", extras={"모델명": "RQ1234", "용량": 870})

        assert bag.model_dump(by_alias=True) == {
            "모델명": "RQ1234",
            "용량": 870,
            "features": ["자동 제빙", "메탈 쿨링"],
        }

    def test_extra_named_like_structured_key(self):
        """An extra called "colors" is kept as text while colors is unset."""
        bag = ProductSpecifications(extras={"colors": "화이트, 블랙"})

        assert bag.colors is None
        assert bag.as_dict() == {"colors": "화이트, 블랙"}

    def test_json_output(self):
        bag = ProductSpecifications(rental_periods=[{"months": 36, "monthly_price": 29900}], extras={"등급": "1등급"})

        assert bag.model_dump(mode="json", by_alias=True) == {
            "등급": "1등급",
            "rentalPeriods": [{"months": 36, "monthlyPrice": 29900.0}],
        }
