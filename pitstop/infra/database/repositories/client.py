"""Repository for ClientProfile."""
from __future__ import annotations

from typing import ClassVar

from pitstop.infra.database.models.client import ClientProfile
from pitstop.infra.database.repositories.base import BaseRepository

DEFAULT_PROFILE = {
    "name": "Client",
    "language": "ru",
    "loyalty_level": "Standard",
}


class ClientRepository(BaseRepository[ClientProfile]):
    model: ClassVar[type] = ClientProfile

    async def get_or_create_profile(self, client_id: str) -> tuple[ClientProfile, bool]:
        return await self.get_or_create({"client_id": client_id}, dict(DEFAULT_PROFILE))
