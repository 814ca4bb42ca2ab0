"""Shared pydantic base model and record helpers."""

import secrets
import string
import time
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

_BASE36 = string.digits + string.ascii_lowercase


class CamelModel(BaseModel):
    """Base model persisted with camelCase keys.

    Python code uses snake_case attributes; the JSON state files keep the
    camelCase layout the UI reads.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dictionary with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def generate_id(prefix: str) -> str:
    """Generate ``<prefix>-<epoch ms>-<8 base36 chars>``."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(8))
    return f"{prefix}-{now_ms()}-{suffix}"
