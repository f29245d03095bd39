from typing import Optional

from lifelink.schemas.base_schema import BaseSchema


class DatabaseStatus(BaseSchema):
    is_setup: bool
    missing_tables: list[str] = []
    error: Optional[str] = None
    instructions: list[str] = []
