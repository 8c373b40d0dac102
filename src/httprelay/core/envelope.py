"""
Response envelope wrapping an upstream response.
"""

import base64
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .exceptions import AlreadyConsumedError


@dataclass
class ResponseEnvelope:
    """
    Wrapped upstream response plus cache-hit metadata.
    
    One envelope is produced per execute() call, or restored from the cache.
    The body can be read exactly once; a second read raises
    AlreadyConsumedError instead of silently returning nothing.
    
    Attributes:
        status_code: HTTP status code
        headers: Response headers (each value a list of strings)
        body: Raw response body
        reason_phrase: HTTP reason phrase
        cache_hit: True when the envelope was restored from the cache
    """
    status_code: int
    headers: Dict[str, List[str]] = field(default_factory=dict)
    body: bytes = field(default=b"", repr=False)
    reason_phrase: str = ""
    cache_hit: bool = False
    _consumed: bool = field(default=False, init=False, repr=False, compare=False)

    @property
    def consumed(self) -> bool:
        """Whether the body has already been read."""
        return self._consumed

    def read_body(self) -> bytes:
        """
        Consume and return the body.
        
        Raises:
            AlreadyConsumedError: If the body was read before
        """
        if self._consumed:
            raise AlreadyConsumedError(
                f"Response body already consumed (status {self.status_code})"
            )
        self._consumed = True
        return self.body

    def get_header(self, name: str) -> List[str]:
        """Return all values of a header (case-insensitive), or an empty list."""
        wanted = name.lower()
        for header, values in self.headers.items():
            if header.lower() == wanted:
                return list(values)
        return []

    def get_header_line(self, name: str) -> str:
        """Return the values of a header joined by a comma."""
        return ", ".join(self.get_header(name))

    def has_header(self, name: str) -> bool:
        """Check whether a header is present (case-insensitive)."""
        return bool(self.get_header(name))

    @property
    def charset(self) -> Optional[str]:
        """Charset declared in the Content-Type header, if any."""
        for part in self.get_header_line("content-type").split(";")[1:]:
            key, _, value = part.strip().partition("=")
            if key.lower() == "charset" and value:
                return value.strip('"')
        return None

    def to_cache_entry(self) -> Dict[str, Any]:
        """
        Snapshot the envelope as a JSON-safe dict for a cache store.
        
        The snapshot is taken from the raw body, so it does not consume it.
        """
        return {
            "status_code": self.status_code,
            "headers": {name: list(values) for name, values in self.headers.items()},
            "body": base64.b64encode(self.body).decode("ascii"),
            "reason_phrase": self.reason_phrase,
        }

    @classmethod
    def from_cache_entry(cls, entry: Dict[str, Any]) -> "ResponseEnvelope":
        """Restore a fresh envelope from a cache snapshot, flagged as a cache hit."""
        return cls(
            status_code=int(entry["status_code"]),
            headers={name: list(values) for name, values in entry.get("headers", {}).items()},
            body=base64.b64decode(entry.get("body", "")),
            reason_phrase=entry.get("reason_phrase", ""),
            cache_hit=True,
        )
