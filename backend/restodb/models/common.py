"""Shared base model for API payloads."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base model that speaks camelCase on the wire and accepts either case on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
