"""
Base Pydantic schemas
"""

from datetime import datetime
from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """
    Base schema with common configuration
    """

    model_config = ConfigDict(
        from_attributes=True,  # Enable ORM mode (SQLAlchemy compatibility)
        populate_by_name=True,
        str_strip_whitespace=True,
        use_enum_values=False,  # Return enum objects, not string values
    )


class TimestampSchema(BaseSchema):
    """
    Schema with timestamp fields
    """

    created_at: datetime
    updated_at: datetime


class IDSchema(BaseSchema):
    """
    Schema with integer ID
    """

    id: int


class BaseResponseSchema(IDSchema, TimestampSchema):
    """
    Base response schema with ID and timestamps
    """

    pass
