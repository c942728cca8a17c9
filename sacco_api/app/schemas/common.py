"""
Shared pydantic configuration.

The frontend speaks camelCase JSON (``groupId``, ``totalDeposits``)
while Python code uses snake_case attributes.  ``CamelModel`` maps
between the two: responses are serialised with camelCase aliases and
requests are accepted in either spelling.
"""

from datetime import datetime, timezone
from typing import Annotated, Any

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

# Wallet addresses are 0x-prefixed 20 byte hex strings (42 characters);
# the column width matches.
ADDRESS_MAX_LENGTH = 42

Address = Annotated[str, Field(min_length=1, max_length=ADDRESS_MAX_LENGTH)]


def utcnow() -> datetime:
    """Timestamp used for ``created_at``/``timestamp`` defaults."""
    return datetime.now(timezone.utc)


def reject_null(value: Any) -> Any:
    """Refuse an explicit ``null`` for a column that cannot hold one.

    ``Update`` schemas use ``None`` as "not supplied"; a client sending
    ``null`` would otherwise write it through to the record.
    """
    if value is None:
        raise ValueError("must not be null")
    return value


class CamelModel(BaseModel):
    # Whitespace is stripped before length constraints are checked, so
    # "   " fails ``min_length=1``.
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
        "str_strip_whitespace": True,
    }
