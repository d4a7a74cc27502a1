"""
Base model configuration shared by all polariskit models.
"""

from pydantic import BaseModel, ConfigDict


class BasePolarisModel(BaseModel):
    """
    Base model for entities returned by the catalog service.

    Unknown fields are ignored so that newer server versions can add
    attributes without breaking parsing. Fields are populated by either their
    Python name or their camelCase wire alias.
    """

    model_config = ConfigDict(
        populate_by_name=True,  # Allow field population by name
        use_enum_values=False,  # Keep enums as enum objects
        extra="ignore",
    )


class FrozenPolarisModel(BasePolarisModel):
    """Immutable, hashable variant used for values that act as keys."""

    model_config = ConfigDict(frozen=True)
