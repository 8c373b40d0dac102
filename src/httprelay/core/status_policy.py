"""
Status code allow-list deciding which upstream statuses are acceptable.
"""

from typing import FrozenSet, Iterable, Optional

from .exceptions import ConfigurationError


# https://developer.mozilla.org/en-US/docs/Web/HTTP/Status
DEFAULT_STATUS_CODES = frozenset({200, 201, 202, 204})

# Proxied calls pass upstream client errors through to the caller
PROXY_STATUS_CODES = frozenset(
    list(range(200, 207)) + list(range(400, 409)) + [410, 501]
)


class StatusPolicy:
    """
    Allow-list of HTTP status codes treated as non-fatal.
    
    Membership is an exact integer match; there are no range semantics, so a
    caller wanting every 2xx code has to list them.
    """

    def __init__(self, valid_status_codes: Optional[Iterable[int]] = None):
        self._codes: FrozenSet[int] = DEFAULT_STATUS_CODES
        if valid_status_codes is not None:
            self.set_valid_status_codes(valid_status_codes)

    @property
    def valid_status_codes(self) -> FrozenSet[int]:
        return self._codes

    def set_valid_status_codes(self, codes: Iterable[int]) -> "StatusPolicy":
        """
        Replace the allow-list wholesale.
        
        Raises:
            ConfigurationError: If codes is empty
        """
        codes = frozenset(int(code) for code in codes)
        if not codes:
            raise ConfigurationError(
                "Cannot set empty valid status codes, please fill in at least one"
            )
        self._codes = codes
        return self

    def is_acceptable(self, status_code: Optional[int]) -> bool:
        """Whether the status code is a literal member of the allow-list."""
        if status_code is None or isinstance(status_code, bool):
            return False
        return status_code in self._codes

    def describe(self) -> str:
        """Comma separated allow-list, for error messages."""
        return ",".join(str(code) for code in sorted(self._codes))
