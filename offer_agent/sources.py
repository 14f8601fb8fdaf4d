from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Protocol


class PayloadSource(Protocol):
    source: str

    def fetch_payload(self) -> Any:
        ...


class JsonPayloadSource:
    """Reads a saved vendor response from disk.

    Accepts either the bare response or a request body that wraps it
    under ``flipkartOfferApiResponse``.
    """

    def __init__(self, file_path: str, source: str | None = None) -> None:
        self.file_path = Path(file_path)
        self.source = source or self.file_path.name

    def fetch_payload(self) -> Any:
        payload = json.loads(self.file_path.read_text(encoding="utf-8"))
        if isinstance(payload, dict) and "flipkartOfferApiResponse" in payload:
            return payload["flipkartOfferApiResponse"]
        return payload
