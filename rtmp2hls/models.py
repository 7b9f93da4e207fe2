"""Per-connection data captured during the RTMP connect phase."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class ConnectionInfo:
    """Connection details and the variables extracted from its TCURL."""

    app: str
    tcurl: str
    variables: Optional[dict[str, str]] = None

    def get_var(self, key: str) -> Optional[str]:
        """Return the extracted variable ``key``, or None if absent."""
        if self.variables is None:
            return None
        return self.variables.get(key)

    def copy_vars(self) -> dict[str, str]:
        """Return a copy of all extracted variables."""
        return dict(self.variables or {})

    @property
    def username(self) -> Optional[str]:
        return self.get_var("username")

    @property
    def host(self) -> Optional[str]:
        return self.get_var("host")

    @property
    def app_name(self) -> Optional[str]:
        return self.get_var("app")