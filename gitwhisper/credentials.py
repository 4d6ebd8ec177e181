"""Secret storage for provider API keys and the GitHub token."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Protocol

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

SERVICE_NAME = "gitwhisper"
GITHUB_PAT_KEY = "github-pat"


class SecretStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, secret: str) -> None: ...

    def delete(self, key: str) -> None: ...


class KeyringSecretStore:
    """Secret store backed by the system keyring."""

    def __init__(self, service_name: str = SERVICE_NAME) -> None:
        self.service_name = service_name

    def get(self, key: str) -> Optional[str]:
        try:
            secret = keyring.get_password(self.service_name, key)
        except KeyringError as e:
            # A missing or locked keyring reads as "no stored key" so the
            # environment fallback still applies.
            logger.warning("Keyring unavailable while reading %s: %s", key, e)
            return None
        if secret:
            logger.debug("Retrieved secret for %s from keyring", key)
        return secret or None

    def set(self, key: str, secret: str) -> None:
        try:
            keyring.set_password(self.service_name, key, secret)
        except KeyringError as e:
            raise ConfigError(f"Failed to store secret for {key}: {e}") from e
        logger.info("Stored secret for %s", key)

    def delete(self, key: str) -> None:
        try:
            keyring.delete_password(self.service_name, key)
        except PasswordDeleteError:
            return
        except KeyringError as e:
            raise ConfigError(f"Failed to delete secret for {key}: {e}") from e
        logger.info("Deleted secret for %s", key)


class MemorySecretStore:
    """In-process secret store for tests and scripted runs."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._secrets: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._secrets.get(key) or None

    def set(self, key: str, secret: str) -> None:
        self._secrets[key] = secret

    def delete(self, key: str) -> None:
        self._secrets.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._secrets
