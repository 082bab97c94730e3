"""Persistence for the single global user settings record."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kbindex.config import SettingsDefaults, get_config
from kbindex.db.models import UserSettingsModel
from kbindex.models import UserSettings

logger = logging.getLogger(__name__)


class SettingsStore:
    """Reads and upserts the settings row keyed by the well-known user id.

    The row is created with defaults on first read and is never deleted.
    """

    def __init__(self, session: AsyncSession, defaults: SettingsDefaults | None = None):
        self.session = session
        self.defaults = defaults or get_config().settings

    @property
    def user_id(self) -> str:
        return self.defaults.user_id

    async def _fetch(self) -> UserSettingsModel | None:
        result = await self.session.execute(
            select(UserSettingsModel).where(UserSettingsModel.user_id == self.user_id)
        )
        return result.scalar_one_or_none()

    async def get(self) -> UserSettings:
        """Return stored settings, creating the default row when absent."""
        row = await self._fetch()

        if row is None:
            logger.info(f"Creating default settings for user '{self.user_id}'")
            row = UserSettingsModel(
                user_id=self.user_id,
                base_period_years=self.defaults.base_period_years,
                use_custom_base=self.defaults.use_custom_base,
            )
            self.session.add(row)
            await self.session.flush()

        return UserSettings(
            base_period_years=row.base_period_years,
            use_custom_base=row.use_custom_base,
        )

    async def update(self, settings: UserSettings) -> UserSettings:
        """Upsert every field of ``settings`` (already range-checked by the model)."""
        row = await self._fetch()

        if row is None:
            row = UserSettingsModel(user_id=self.user_id)
            self.session.add(row)

        row.base_period_years = settings.base_period_years
        row.use_custom_base = settings.use_custom_base
        await self.session.flush()

        logger.info(
            f"Settings updated: base_period_years={settings.base_period_years}, "
            f"use_custom_base={settings.use_custom_base}"
        )
        return settings
