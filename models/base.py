"""
Base schemas for all models.

Field names are snake_case in Python and camelCase on the wire
(API responses and the mapping contract both use camelCase).
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseSchema(BaseModel):
    """
    Base for all schemas.

    Features:
        - camelCase aliases (nameKo, monthlyPrice, ...)
        - Accept either the alias or the Python field name on input
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class FrozenSchema(BaseSchema):
    """Schema whose instances cannot be mutated after construction."""
    model_config = ConfigDict(frozen=True)
