"""Logged-in user identity, persisted as a single record."""

from __future__ import annotations

from loguru import logger
from pydantic import BaseModel, TypeAdapter

from eco_sorter.config import USER_KEY
from eco_sorter.errors import StorageError
from eco_sorter.io.codec import decode, encode
from eco_sorter.storage.base import PersistentStore


class UserProfile(BaseModel, frozen=True):
    username: str


_PROFILE = TypeAdapter(UserProfile)


class UserIdentity:
    """Who is using the device. At most one user is logged in."""

    def __init__(self, store: PersistentStore, key: str = USER_KEY) -> None:
        self.store = store
        self.key = key

    async def current_user(self) -> str | None:
        """Logged-in username, or None when nobody is (or it is unreadable)."""
        try:
            payload = await self.store.get(self.key)
            if payload is None:
                return None
            return decode(payload, _PROFILE, self.key).username
        except StorageError as e:
            logger.warning(f"Treating unreadable user record as logged out: {e}")
            return None

    async def login(self, username: str) -> None:
        username = username.strip()
        if not username:
            raise ValueError("username must not be blank")
        await self.store.set(self.key, encode(UserProfile(username=username)))
        logger.info(f"Logged in as {username}")

    async def logout(self) -> None:
        await self.store.remove(self.key)
        logger.info("Logged out")
