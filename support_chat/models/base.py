from typing import Any, Dict

from pydantic import ConfigDict, BaseModel as _BaseModel
from pydantic.alias_generators import to_camel


class BaseModel(_BaseModel):
    """Wire models use camelCase keys, Python code uses snake_case attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        from_attributes=True,
        populate_by_name=True,
        extra='ignore',
    )

    def to_wire(self, **kwargs) -> Dict[str, Any]:
        """Convert model to the JSON document sent to clients."""
        return self.model_dump(mode="json", by_alias=True, **kwargs)
