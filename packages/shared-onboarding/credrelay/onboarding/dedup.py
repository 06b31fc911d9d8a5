"""Content-hash duplicate detection against the registry."""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass

logger = logging.getLogger(__name__)


def hash_token(token: str) -> str:
    """Return the lowercase hex SHA-256 digest of a trimmed token."""
    return hashlib.sha256(token.strip().encode("utf-8")).hexdigest()


class ExistingIndex:
    """Content hashes of credentials already in the registry.

    Each hash maps to the identity label (usually an email) of the matching
    registry entry when one is known. The index only grows: hashes are never
    removed once added.
    """

    def __init__(self, entries: Mapping[str, str | None] | None = None):
        self._entries: dict[str, str | None] = dict(entries or {})

    def __contains__(self, token_hash: object) -> bool:
        return token_hash in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def identity(self, token_hash: str) -> str | None:
        """Return the identity label recorded for a hash, if any."""
        return self._entries.get(token_hash)

    def add(self, token_hash: str, identity: str | None = None) -> None:
        """Record a hash, keeping an already-known identity label."""
        if token_hash in self._entries and identity is None:
            return
        self._entries[token_hash] = identity


@dataclass
class DuplicateCheck:
    """Outcome of a duplicate lookup."""

    token_hash: str
    is_duplicate: bool
    existing_identity: str | None = None


class DuplicateDetector:
    """Classifies credential tokens as new or already onboarded.

    A token's hash is committed with ``commit()`` only after its credential
    was verified, so later copies in the same batch are caught while failed
    items never enter the index.

    Example:
        >>> detector = DuplicateDetector(ExistingIndex())
        >>> check = detector.check(hash_token("abc"))
        >>> check.is_duplicate
        False
        >>> detector.commit(check.token_hash, "user@example.com")
        >>> detector.check(hash_token("abc")).is_duplicate
        True
    """

    def __init__(self, index: ExistingIndex):
        self.index = index

    def check(self, token_hash: str) -> DuplicateCheck:
        """Look up a precomputed token hash."""
        if token_hash in self.index:
            return DuplicateCheck(
                token_hash=token_hash,
                is_duplicate=True,
                existing_identity=self.index.identity(token_hash),
            )
        return DuplicateCheck(token_hash=token_hash, is_duplicate=False)

    def commit(self, token_hash: str, identity: str | None = None) -> None:
        """Add a verified credential's hash to the index."""
        self.index.add(token_hash, identity)
        logger.debug(f"Committed hash {token_hash[:12]} to existing index")
