"""DSN parsing and redaction utilities."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import parse_qs, urlencode, urlparse

from .redaction import redact_query_params


@dataclass
class DSNConfig:
    driver: str
    username: Optional[str]
    password: Optional[str]
    host: Optional[str]
    port: Optional[int]
    database: Optional[str]
    path: str
    query: dict[str, str] = field(default_factory=dict)

    @property
    def backend(self) -> str:
        """
        Backend name without a driver suffix (``postgresql+psycopg`` -> ``postgresql``).
        """
        return self.driver.split("+", 1)[0].lower()

    def redacted(self) -> str:
        """
        Return the DSN with credentials and sensitive options redacted.
        """

        netloc = ""
        if self.username:
            netloc += self.username
            if self.password:
                netloc += ":***"
            netloc += "@"
        if self.host:
            netloc += self.host
        if self.port:
            netloc += f":{self.port}"

        query_string = urlencode(redact_query_params(self.query)) if self.query else ""

        # Build manually so the double slash prefix survives an empty netloc
        result = f"{self.driver}://"
        if netloc:
            result += netloc
        result += self.path or ""
        if query_string:
            result += f"?{query_string}"
        return result


def parse_dsn(dsn: str) -> DSNConfig:
    parsed = urlparse(dsn)
    if not parsed.scheme:
        raise ValueError(f"DSN {dsn!r} is missing a scheme")
    query = {k: v[0] for k, v in parse_qs(parsed.query).items()}
    return DSNConfig(
        driver=parsed.scheme,
        username=parsed.username,
        password=parsed.password,
        host=parsed.hostname,
        port=parsed.port,
        database=parsed.path.lstrip("/") or None,
        path=parsed.path or "",
        query=query,
    )
