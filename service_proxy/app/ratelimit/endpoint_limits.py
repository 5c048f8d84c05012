"""
Per-endpoint upstream rate limits.

The table is a JSON document of the form::

    {"rateLimits": [
        {"method": "GET",
         "path": "/lol/summoner/v4/summoners/by-name/:summonerName",
         "burst": 1600, "interval": 60}
    ]}

Path segments starting with ``:`` match any single segment.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from shared.errors import ConfigurationError
from shared.logging import get_logger


@dataclass(frozen=True)
class EndpointRateLimit:
    """Upstream rate limit for one method and path template."""

    method: str
    path: str
    burst: int
    interval: int

    @property
    def segments(self) -> Tuple[str, ...]:
        return _split_path(self.path)

    def matches(self, method: str, path: str) -> bool:
        if self.method.upper() != method.upper():
            return False

        template = self.segments
        candidate = _split_path(path)
        if len(template) != len(candidate):
            return False

        return all(
            part.startswith(":") or part == value
            for part, value in zip(template, candidate)
        )


def _split_path(path: str) -> Tuple[str, ...]:
    return tuple(segment for segment in path.split("/") if segment)


class EndpointRateLimitTable:
    """Read-only lookup of per-endpoint rate limits."""

    def __init__(self, limits: Optional[List[EndpointRateLimit]] = None):
        self.limits: List[EndpointRateLimit] = list(limits or [])
        self.logger = get_logger("proxy.endpoint_limits")

    def __len__(self) -> int:
        return len(self.limits)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "EndpointRateLimitTable":
        entries = payload.get("rateLimits") if isinstance(payload, dict) else None
        if not isinstance(entries, list):
            raise ConfigurationError("Rate limits file must contain a 'rateLimits' array")

        limits = []
        for index, entry in enumerate(entries):
            try:
                limit = EndpointRateLimit(
                    method=str(entry["method"]),
                    path=str(entry["path"]),
                    burst=int(entry["burst"]),
                    interval=int(entry["interval"]),
                )
            except (KeyError, TypeError, ValueError) as e:
                raise ConfigurationError(
                    f"Invalid rate limit entry at index {index}: {e}",
                    {"index": index}
                ) from e

            if limit.burst <= 0 or limit.interval <= 0:
                raise ConfigurationError(
                    f"Rate limit entry at index {index} must have positive burst and interval",
                    {"index": index, "path": limit.path}
                )
            limits.append(limit)

        return cls(limits)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "EndpointRateLimitTable":
        file_path = Path(path)
        try:
            payload = json.loads(file_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigurationError(
                f"Unable to load rate limits file {file_path}: {e}",
                {"path": str(file_path)}
            ) from e

        table = cls.from_dict(payload)
        table.logger.info("Loaded endpoint rate limits", path=str(file_path), count=len(table))
        return table

    def lookup(self, method: str, path: str) -> Optional[EndpointRateLimit]:
        """Return the first entry matching ``method`` and ``path``."""
        for limit in self.limits:
            if limit.matches(method, path):
                return limit
        return None
