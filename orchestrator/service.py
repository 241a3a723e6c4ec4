"""
Module 07 - Pass Service

Issues loyalty passes, tracks registered devices and serves updated
packages. Composes a PassPackager with a StateStore.

A new pass record is stored only after its package was fully built, so
a failed generation leaves the store untouched.
"""

from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from core.schemas.canonical import ensure_utc
from core.schemas.errors import AuthenticationError, PassNotFoundError
from core.schemas.pass_record import DeviceRegistration, PassRecord, now_millis

from orchestrator.pipeline import PassPackager
from orchestrator.store import StateStore


logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase
SERIAL_SUFFIX_LENGTH = 10
AUTH_TOKEN_BYTES = 24  # 32 url-safe characters
INITIAL_BALANCE = 0.0
DEFAULT_FILENAME = "loyalty.pkpass"


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("base36 value must be non-negative")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_serial() -> str:
    """Millisecond timestamp in base36 followed by a random base36 suffix."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(SERIAL_SUFFIX_LENGTH))
    return to_base36(now_millis()) + suffix


def generate_auth_token() -> str:
    return secrets.token_urlsafe(AUTH_TOKEN_BYTES)


@dataclass
class IssuedPass:
    """A freshly issued pass and its package bytes."""
    serial: str
    record: PassRecord
    package: bytes
    filename: str = DEFAULT_FILENAME

    @property
    def auth_token(self) -> str:
        return self.record.auth_token


@dataclass
class LatestPass:
    """Current package for a pass, with its modification time."""
    serial: str
    package: bytes
    last_modified: datetime


class PassService:
    """
    Pass issuance and web service operations.

    Usage:
        service = PassService(packager, store)
        issued = service.issue_pass("Ada")
        service.register_device("dev1", pass_type, issued.serial, "push", issued.auth_token)
    """

    def __init__(self, packager: PassPackager, store: StateStore) -> None:
        self.packager = packager
        self.store = store

    @property
    def pass_type_identifier(self) -> str:
        return self.packager.pass_config.pass_type_identifier

    def issue_pass(
        self,
        name: Optional[str] = None,
        *,
        web_service_url: Optional[str] = None,
    ) -> IssuedPass:
        """
        Create a new pass with a zero balance.

        Raises:
            GenerationError: If the package cannot be built; nothing is stored.
            StateStoreError: If the record cannot be saved.
        """
        holder = name or self.packager.pass_config.default_holder_name
        serial = generate_serial()
        record = PassRecord(name=holder, balance=INITIAL_BALANCE, auth_token=generate_auth_token())

        package = self.packager.package(
            serial,
            record.name,
            record.balance,
            auth_token=record.auth_token,
            web_service_url=web_service_url,
        )
        self.store.put(serial, record)
        logger.info(f"Issued pass {serial} for {holder!r}")
        return IssuedPass(serial=serial, record=record, package=package)

    def _authorize(self, pass_type: str, serial: str, auth_token: Optional[str]) -> PassRecord:
        if not auth_token:
            raise AuthenticationError()
        if pass_type != self.pass_type_identifier:
            raise PassNotFoundError(serial)
        record = self.store.get(serial)
        if record is None:
            raise PassNotFoundError(serial)
        if not secrets.compare_digest(record.auth_token, auth_token):
            raise AuthenticationError()
        return record

    def register_device(
        self,
        device: str,
        pass_type: str,
        serial: str,
        push_token: str,
        auth_token: Optional[str],
    ) -> bool:
        """
        Register a device for update pushes.

        Returns:
            True if the device was newly registered, False if it already was.

        Raises:
            AuthenticationError: Missing or wrong token.
            PassNotFoundError: Unknown pass type or serial.
        """
        record = self._authorize(pass_type, serial, auth_token)
        if record.has_device(device):
            return False
        record.devices.append(DeviceRegistration(device=device, push_token=push_token))
        record.touch()
        self.store.put(serial, record)
        logger.info(f"Registered device {device} for pass {serial}")
        return True

    def latest_pass(
        self,
        pass_type: str,
        serial: str,
        auth_token: Optional[str],
        if_modified_since: Optional[datetime] = None,
        *,
        web_service_url: Optional[str] = None,
    ) -> Optional[LatestPass]:
        """
        Rebuild the package from the stored record.

        Returns None when ``if_modified_since`` is not older than the
        record's last update (compared in whole seconds).

        Raises:
            AuthenticationError: Missing or wrong token.
            PassNotFoundError: Unknown pass type or serial.
            GenerationError: If the package cannot be rebuilt.
        """
        record = self._authorize(pass_type, serial, auth_token)
        updated_seconds = record.last_updated // 1000
        if if_modified_since is not None:
            since_seconds = int(ensure_utc(if_modified_since).timestamp())
            if since_seconds >= updated_seconds:
                return None

        package = self.packager.package(
            serial,
            record.name,
            record.balance,
            auth_token=record.auth_token,
            web_service_url=web_service_url,
        )
        return LatestPass(
            serial=serial,
            package=package,
            last_modified=datetime.fromtimestamp(updated_seconds, tz=timezone.utc),
        )


__all__ = [
    "IssuedPass",
    "LatestPass",
    "PassService",
    "generate_serial",
    "generate_auth_token",
    "to_base36",
]
