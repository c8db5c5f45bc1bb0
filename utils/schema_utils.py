# utils/schema_utils.py

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Wire models: snake_case attributes, camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
