from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict


class ProviderCredential(BaseModel):
    """A provider access token. Refreshes replace the object, never mutate it."""

    model_config = ConfigDict(frozen=True)

    provider_name: str
    token: str
    issued_at: datetime
    expires_at: datetime

    def is_stale(self, now: datetime, buffer_seconds: int) -> bool:
        return now > self.expires_at - timedelta(seconds=buffer_seconds)
