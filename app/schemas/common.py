"""
GreenPantry API — Shared schema base

Request bodies accept camelCase (as sent by the web client) or snake_case;
responses are serialized in camelCase.
"""
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class Address(CamelModel):
    street: str = Field("", max_length=255)
    city: str = Field("", max_length=100)
    state: str = Field("", max_length=100)
    postal_code: str = Field("", max_length=20)
    country: str = "India"
    latitude: float = 0.0
    longitude: float = 0.0


class MessageResponse(CamelModel):
    message: str
