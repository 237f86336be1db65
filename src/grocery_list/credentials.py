"""
Credential storage and gating for the enrichment services.

The gate answers "may we call this service?" and, when the answer is no,
signals whoever is listening (a settings prompt in a UI, a log line in the
CLI) that a credential should be entered. It never talks to the network.
"""

import logging
import os
import sqlite3
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

from .errors import CredentialError

logger = logging.getLogger(__name__)

# Logical credential names, also used as storage keys
SUGGESTION_CREDENTIAL = "openrouter_api_key"
IMAGE_CREDENTIAL = "pexels_api_key"

KNOWN_CREDENTIALS = (SUGGESTION_CREDENTIAL, IMAGE_CREDENTIAL)

CredentialPrompt = Callable[[str], None]


class CredentialStore(Protocol):
    """Key-value persistence used behind the gate."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryCredentialStore:
    """Credential store that lives only as long as the process."""

    def __init__(self, initial: Mapping[str, str] | None = None):
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value


class SQLiteCredentialStore:
    """Credential store backed by a single SQLite table."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise CredentialError(f"Could not open credential store {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        conn = self._connect()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS credentials (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_ts TEXT NOT NULL
                )
            """)
            conn.commit()
        except sqlite3.Error as e:
            raise CredentialError(f"Could not prepare credential store {self.db_path}: {e}") from e
        finally:
            conn.close()

    def get(self, key: str) -> str | None:
        conn = self._connect()
        try:
            cursor = conn.execute("SELECT value FROM credentials WHERE key = ?", (key,))
            row = cursor.fetchone()
            return row["value"] if row else None
        except sqlite3.Error as e:
            raise CredentialError(f"Could not read credential {key}: {e}") from e
        finally:
            conn.close()

    def set(self, key: str, value: str) -> None:
        now = datetime.now(UTC).isoformat()
        conn = self._connect()
        try:
            conn.execute(
                """
                INSERT INTO credentials (key, value, updated_ts) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_ts = excluded.updated_ts
                """,
                (key, value, now),
            )
            conn.commit()
        except sqlite3.Error as e:
            raise CredentialError(f"Could not store credential {key}: {e}") from e
        finally:
            conn.close()


class CredentialGate:
    """
    Gatekeeper for external-service credentials.

    Args:
        store: Backing key-value store (in-memory when omitted)
        on_request: Optional prompt callback, called with the credential
            name whenever a credential is requested
    """

    def __init__(
        self,
        store: CredentialStore | None = None,
        on_request: CredentialPrompt | None = None,
    ):
        self.store = store if store is not None else MemoryCredentialStore()
        self._prompts: list[CredentialPrompt] = []
        if on_request is not None:
            self._prompts.append(on_request)

    def has(self, name: str) -> bool:
        """True when a non-blank credential is stored under ``name``."""
        value = self.store.get(name)
        return bool(value and value.strip())

    def get(self, name: str) -> str | None:
        value = self.store.get(name)
        if value is None or not value.strip():
            return None
        return value

    def set(self, name: str, value: str) -> None:
        self.store.set(name, value)
        logger.info(f"Credential {name} updated")

    def missing(self) -> list[str]:
        """Known credential names that have no value yet."""
        return [name for name in KNOWN_CREDENTIALS if not self.has(name)]

    def save(self, values: Mapping[str, str]) -> list[str]:
        """
        Store every non-blank value from a settings form.

        Returns the names that were saved. Raises CredentialError when all
        values are blank, in which case nothing is stored.
        """
        to_save = {name: value for name, value in values.items() if value and value.strip()}
        if not to_save:
            raise CredentialError("Please enter at least one API key")

        for name, value in to_save.items():
            self.set(name, value)
        return list(to_save)

    def load_from_env(self, env_names: Mapping[str, str | None]) -> list[str]:
        """
        Seed missing credentials from environment variables.

        Args:
            env_names: Mapping of credential name -> environment variable name

        Returns:
            Credential names that were loaded
        """
        loaded = []
        for name, env_var in env_names.items():
            if not env_var or self.has(name):
                continue
            value = os.environ.get(env_var)
            if value and value.strip():
                self.set(name, value)
                loaded.append(name)
        return loaded

    def add_prompt(self, prompt: CredentialPrompt) -> Callable[[], None]:
        """Register a prompt callback. Returns a function that removes it."""
        self._prompts.append(prompt)

        def remove() -> None:
            if prompt in self._prompts:
                self._prompts.remove(prompt)

        return remove

    def request(self, name: str) -> None:
        """Signal that the user should be asked for ``name``."""
        if not self._prompts:
            logger.warning(f"Credential {name} is required but no prompt is registered")
            return

        logger.info(f"Requesting credential {name}")
        for prompt in list(self._prompts):
            try:
                prompt(name)
            except Exception:
                logger.exception(f"Credential prompt failed for {name}")
