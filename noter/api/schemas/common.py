"""Base model shared by the request/response schemas.

Python attributes are snake_case; the wire format is camelCase.
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageOut(ApiModel):
    message: str


class HealthOut(ApiModel):
    ok: bool
    db: bool
