"""Batch input parsing.

Accepts two JSON wire shapes and normalizes both into an ordered list of
CredentialInput records:

- Flat: an array (or single object) of credential fields
  ``[{"token": "...", "clientId": "...", "authRegion": "us-east-1"}]``
- Envelope: an export carrying an ``accounts`` array whose entries nest the
  credential fields under ``credentials``
  ``{"version": 1, "accounts": [{"email": "...", "credentials": {"token": "..."}}]}``

The shape is detected from structural markers once, at parse time.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from credrelay.onboarding.exceptions import ParseError

logger = logging.getLogger(__name__)

# Token field name and its accepted alias
TOKEN_KEYS = ("token", "refreshToken")

# Externally-reported status marking an envelope account as known-bad
FLAGGED_STATUS = "error"


class InputFormat(str, Enum):
    """Accepted batch input shapes."""

    FLAT = "flat"
    ENVELOPE = "envelope"


@dataclass
class CredentialInput:
    """A single normalized credential submitted for onboarding."""

    token: str = field(repr=False)
    client_id: str | None = None
    client_secret: str | None = field(default=None, repr=False)
    auth_region: str | None = None
    api_region: str | None = None
    region: str | None = None
    priority: int | None = None
    machine_id: str | None = None
    status: str | None = None
    identity_hint: str | None = None  # email or nickname carried by the input

    @property
    def is_flagged(self) -> bool:
        """Return True if the source reported this credential as bad."""
        return self.status == FLAGGED_STATUS

    @property
    def resolved_auth_region(self) -> str | None:
        """Auth region, falling back to the generic region."""
        return self.auth_region or self.region


@dataclass
class ParsedBatch:
    """Result of parsing raw batch input."""

    format: InputFormat
    inputs: list[CredentialInput]
    total_found: int

    @property
    def dropped(self) -> int:
        """Number of entries dropped for lacking a usable token."""
        return self.total_found - len(self.inputs)


def _text(value: Any) -> str | None:
    """Return a trimmed string, or None for non-strings and blank strings."""
    if not isinstance(value, str):
        return None
    return value.strip() or None


def _priority(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _token(fields: dict[str, Any]) -> str | None:
    for key in TOKEN_KEYS:
        token = _text(fields.get(key))
        if token:
            return token
    return None


def _has_nested_credentials(entry: Any) -> bool:
    return isinstance(entry, dict) and isinstance(entry.get("credentials"), dict)


class InputParser:
    """Parses raw batch text into normalized credential inputs.

    Example:
        >>> batch = InputParser().parse('[{"token": "abc"}]')
        >>> batch.format
        <InputFormat.FLAT: 'flat'>
        >>> len(batch.inputs)
        1
    """

    def parse(self, raw: str) -> ParsedBatch:
        """Parse raw JSON text.

        Args:
            raw: The batch text as pasted or uploaded by the caller.

        Returns:
            ParsedBatch with the detected format and valid inputs in order.

        Raises:
            ParseError: If the text is not JSON, matches neither shape, or
                yields no entry with a non-empty token.
        """
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise ParseError(f"Input is not valid JSON: {e}") from e

        input_format, entries = self.detect_shape(data)

        if input_format == InputFormat.ENVELOPE:
            inputs = [self._from_envelope(e) for e in entries if self._is_valid_envelope(e)]
        else:
            inputs = [self._from_flat(e) for e in entries if self._is_valid_flat(e)]

        if not inputs:
            raise ParseError(
                f"Found {len(entries)} {input_format.value} entries, 0 valid: "
                "no entry has a non-empty token"
            )

        batch = ParsedBatch(format=input_format, inputs=inputs, total_found=len(entries))
        if batch.dropped:
            logger.warning(
                f"Dropped {batch.dropped} of {batch.total_found} {input_format.value} "
                "entries without a non-empty token"
            )
        return batch

    def detect_shape(self, data: Any) -> tuple[InputFormat, list[Any]]:
        """Resolve decoded JSON into an input format and its raw entries.

        Raises:
            ParseError: If the structure matches neither accepted shape.
        """
        if isinstance(data, dict):
            if "accounts" in data:
                accounts = data["accounts"]
                if not isinstance(accounts, list):
                    raise ParseError("Envelope 'accounts' must be an array")
                return InputFormat.ENVELOPE, accounts
            if _has_nested_credentials(data):
                return InputFormat.ENVELOPE, [data]
            return InputFormat.FLAT, [data]

        if isinstance(data, list):
            if any(_has_nested_credentials(entry) for entry in data):
                return InputFormat.ENVELOPE, data
            return InputFormat.FLAT, data

        raise ParseError(
            f"Unsupported input: expected a JSON object or array, got {type(data).__name__}"
        )

    def _is_valid_flat(self, entry: Any) -> bool:
        return isinstance(entry, dict) and _token(entry) is not None

    def _is_valid_envelope(self, entry: Any) -> bool:
        return _has_nested_credentials(entry) and _token(entry["credentials"]) is not None

    def _from_flat(self, entry: dict[str, Any]) -> CredentialInput:
        return CredentialInput(
            token=_token(entry) or "",
            client_id=_text(entry.get("clientId")),
            client_secret=_text(entry.get("clientSecret")),
            auth_region=_text(entry.get("authRegion")),
            api_region=_text(entry.get("apiRegion")),
            region=_text(entry.get("region")),
            priority=_priority(entry.get("priority")),
            machine_id=_text(entry.get("machineId")),
        )

    def _from_envelope(self, entry: dict[str, Any]) -> CredentialInput:
        creds = entry["credentials"]
        return CredentialInput(
            token=_token(creds) or "",
            client_id=_text(creds.get("clientId")),
            client_secret=_text(creds.get("clientSecret")),
            auth_region=_text(creds.get("region")),
            api_region=_text(creds.get("region")),
            region=_text(creds.get("region")),
            machine_id=_text(entry.get("machineId")),
            status=_text(entry.get("status")),
            identity_hint=_text(entry.get("email")) or _text(entry.get("nickname")),
        )


def parse_batch(raw: str) -> ParsedBatch:
    """Parse raw batch text with a default InputParser."""
    return InputParser().parse(raw)
