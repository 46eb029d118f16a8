"""Fixed utility bundle exposed to tool scripts as ``utils``."""

from __future__ import annotations

import asyncio
import json
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Union

from .storage import TTLStorage

DateLike = Union[datetime, date, str]


@dataclass(frozen=True)
class UtilityBundle:
    device_id: str
    storage: TTLStorage

    @staticmethod
    def generate_id() -> str:
        return uuid.uuid4().hex[:9]

    @staticmethod
    def format_date(value: DateLike, fmt: str = "%m/%d/%Y") -> str:
        """Format a date, datetime or ISO-8601 string (default ``MM/DD/YYYY``)."""
        if isinstance(value, str):
            value = datetime.fromisoformat(value)
        return value.strftime(fmt)

    @staticmethod
    async def sleep(ms: float) -> None:
        await asyncio.sleep(ms / 1000)

    @staticmethod
    def parse_json(text: str) -> Any:
        try:
            return json.loads(text)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid JSON: {e}") from e

    @staticmethod
    def stringify_json(obj: Any) -> str:
        return json.dumps(obj, indent=2, default=str)

    def get_device_id(self) -> str:
        return self.device_id
