"""Request models for the KB Index web API."""

from __future__ import annotations

from pydantic import Field

from kbindex.models import CamelModel, UserSettings


class SettingsUpdateRequest(CamelModel):
    """Body of PUT /api/settings.

    Both fields are required: an update replaces the stored record.
    """

    base_period_years: int = Field(ge=1, le=10)
    use_custom_base: bool

    def to_settings(self) -> UserSettings:
        return UserSettings(
            base_period_years=self.base_period_years,
            use_custom_base=self.use_custom_base,
        )
