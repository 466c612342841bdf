"""Issue and revoke the transient staging API key used by pull-request builds."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Protocol

from stagehand.models.build import TransientAPIKey
from stagehand.services.errors import CredentialIssuanceError, CredentialRevocationError

LOGGER = logging.getLogger(__name__)

KEY_NAME_PREFIX = "temporary-"


class SupportsAPIKeyManagement(Protocol):
    """Subset of the content service client used to manage API keys."""

    async def issue_api_key(self, name: str) -> str:
        """Create a named API key and return its value."""

    async def revoke_api_key(self, key: str) -> None:
        """Invalidate a previously issued API key."""


@dataclass(slots=True)
class CredentialLifecycle:
    """Own a revision-scoped key from issuance until revocation.

    Each issued key is revoked at most once; repeated calls for the same key are
    ignored so the content service only ever sees one revocation.
    """

    content_service: SupportsAPIKeyManagement
    _revoked: set[str] = field(default_factory=set, init=False, repr=False)

    async def issue(self, revision_id: str) -> TransientAPIKey:
        name = KEY_NAME_PREFIX + revision_id
        LOGGER.debug("Issuing transient staging API key.")

        try:
            value = await self.content_service.issue_api_key(name)
        except Exception as exc:
            raise CredentialIssuanceError(f"Unable to issue transient API key {name}: {exc}") from exc

        if not value:
            raise CredentialIssuanceError(f"Content service returned an empty API key for {name}")
        return TransientAPIKey(revision_id=revision_id, name=name, value=value)

    async def revoke(self, key: TransientAPIKey) -> None:
        if key.name in self._revoked:
            LOGGER.debug("Transient API key %s already revoked.", key.name)
            return

        LOGGER.debug("Revoking transient staging API key.")
        self._revoked.add(key.name)
        try:
            await self.content_service.revoke_api_key(key.value)
        except Exception as exc:
            LOGGER.error("Unable to revoke transient API key %s.", key.name)
            raise CredentialRevocationError(f"Unable to revoke transient API key {key.name}: {exc}") from exc

    def is_revoked(self, key: TransientAPIKey) -> bool:
        return key.name in self._revoked
