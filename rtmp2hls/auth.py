"""TCURL authorization against path patterns."""

from __future__ import annotations

from typing import Optional

from .pattern import extract_path_from_tcurl, extract_variables, pattern_to_regex


class AuthenticationError(Exception):
    """Raised when a publish request fails authentication."""


class Authorizer:
    """Match TCURL paths against a list of ``{var}`` patterns."""

    def __init__(self, patterns: list[str]) -> None:
        self._patterns = patterns

    @property
    def authorized_patterns(self) -> list[str]:
        return self._patterns

    def is_authorized(self, tcurl: str) -> bool:
        """Return True if the TCURL's path matches any pattern."""
        return self.extract_variables(tcurl) is not None

    def extract_variables(self, tcurl: str) -> Optional[dict[str, str]]:
        """Return the variables of the first matching pattern, or None."""
        path = extract_path_from_tcurl(tcurl)
        for pattern in self._patterns:
            regex_str, names = pattern_to_regex(pattern)
            found = extract_variables(regex_str, names, path)
            if found is not None:
                return found
        return None

    def validate_authentication(
        self, variables: dict[str, str], publishing_name: str
    ) -> None:
        """Raise AuthenticationError unless the publish name fits the variables."""
        if not publishing_name:
            raise AuthenticationError("empty publishingName provided")
        username = variables.get("username")
        if username is not None and username != publishing_name:
            raise AuthenticationError(
                f"extracted username '{username}' does not match "
                f"publishingName '{publishing_name}'"
            )