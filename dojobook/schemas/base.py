from humps import camelize
from pydantic import BaseModel, ConfigDict


class OrmBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class CamelModel(BaseModel):
    """Payload model exposed to API clients with camelCase field names."""

    model_config = ConfigDict(alias_generator=camelize, populate_by_name=True)


class CamelOrmBase(CamelModel):
    model_config = ConfigDict(
        alias_generator=camelize, populate_by_name=True, from_attributes=True
    )
