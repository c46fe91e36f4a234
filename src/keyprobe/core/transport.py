"""Request and response types exchanged between providers and the engine."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ProviderRequest:
    """The HTTP request a provider wants sent for one key."""

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, str] | None = None
    json_body: dict[str, Any] | None = None


@dataclass(frozen=True)
class ProviderResponse:
    """Transport-independent view of an HTTP response.

    Header names are lowercase.
    """

    status_code: int
    text: str = ""
    headers: dict[str, str] = field(default_factory=dict)

    def json(self) -> Any:
        """Parse the body as JSON.

        Raises:
            ValueError: If the body is not valid JSON.
        """
        return json.loads(self.text)
