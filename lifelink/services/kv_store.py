from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from lifelink.models.kv_store_model import KeyValue


class KeyValueStore:
    """
    Small key-value facade over the ``kv_store`` table.

    Every write commits on its own; callers that fan out writes get no
    transaction around the batch.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, key: str) -> Optional[Any]:
        result = await self.db.execute(select(KeyValue).where(KeyValue.key == key))
        row = result.scalar_one_or_none()
        return row.value if row is not None else None

    async def set(self, key: str, value: Any) -> None:
        row = await self.db.get(KeyValue, key)
        if row is None:
            self.db.add(KeyValue(key=key, value=value))
        else:
            row.value = value
        await self.db.commit()

    async def get_by_prefix(self, prefix: str) -> list[tuple[str, Any]]:
        result = await self.db.execute(
            select(KeyValue)
            .where(KeyValue.key.startswith(prefix, autoescape=True))
            .order_by(KeyValue.key)
        )
        return [(row.key, row.value) for row in result.scalars().all()]
