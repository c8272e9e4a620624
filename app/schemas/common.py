"""
Common Pydantic schemas
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Request bodies use camelCase keys on the wire"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def updates(self) -> dict:
        """Fields the client actually sent, keyed by wire name"""
        return self.model_dump(by_alias=True, exclude_unset=True)


class ErrorResponse(BaseModel):
    """Error response schema"""
    success: bool = False
    error: str
