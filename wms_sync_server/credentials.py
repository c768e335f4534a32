"""Credential tuple used for every call against the WMS provider."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .errors import CredentialError


REQUIRED_FIELDS = (
    "client_id",
    "client_secret",
    "user_login_id",
    "facility_id",
    "customer_id",
)

_ENV_NAMES = {
    "client_id": "WMS_CLIENT_ID",
    "client_secret": "WMS_CLIENT_SECRET",
    "user_login_id": "WMS_USER_LOGIN_ID",
    "facility_id": "WMS_FACILITY_ID",
    "customer_id": "WMS_CUSTOMER_ID",
}


def mask_value(value: Optional[str]) -> str:
    """Keep the first and last four characters of a secret."""
    if not value or len(value) < 8:
        return "***"
    return value[:4] + "***" + value[-4:]


@dataclass(frozen=True)
class Credentials:
    client_id: str = ""
    client_secret: str = ""
    user_login_id: str = ""
    facility_id: str = ""
    customer_id: str = ""

    @classmethod
    def from_env(cls, **overrides: Any) -> "Credentials":
        """Build credentials from WMS_* environment variables.

        Non-empty keyword overrides win over the environment, so tool
        callers can pass a full tuple explicitly or rely on `.env`.
        """
        values: Dict[str, str] = {}
        for name, env_name in _ENV_NAMES.items():
            override = overrides.get(name)
            if override not in (None, ""):
                values[name] = str(override)
            else:
                values[name] = os.getenv(env_name, "") or ""
        return cls(**values)

    @property
    def identity(self) -> Tuple[str, str, str]:
        return (self.client_id, self.customer_id, self.user_login_id)

    def missing(self) -> list[str]:
        return [name for name in REQUIRED_FIELDS if not getattr(self, name)]

    def validate(self) -> "Credentials":
        """Raise CredentialError before any network call if a field is empty."""
        missing = self.missing()
        if missing:
            raise CredentialError(missing)
        return self

    def masked(self) -> Dict[str, str]:
        return {
            "client_id": mask_value(self.client_id),
            "client_secret": mask_value(self.client_secret),
            "user_login_id": self.user_login_id,
            "facility_id": self.facility_id,
            "customer_id": self.customer_id,
        }

    def __repr__(self) -> str:
        parts = ", ".join(f"{k}={v!r}" for k, v in self.masked().items())
        return f"Credentials({parts})"

    __str__ = __repr__

