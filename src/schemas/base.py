"""Base schema for API payloads.

The mobile client speaks camelCase; Python code uses snake_case. Every API
schema accepts either spelling on input and is dumped with camelCase keys.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_api(self) -> dict:
        """Dump with camelCase keys and JSON-compatible values."""
        return self.model_dump(mode="json", by_alias=True)
