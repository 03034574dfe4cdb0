from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

import requests

from . import __version__
from .config import ClientConfig
from .errors import APIError
from .logging import StructuredLogger

USER_AGENT = f"srccli/{__version__}"
HTTP_ERROR_STATUS = 400

JsonObject = dict[str, Any]


@dataclass
class SourceCraftClient:
    """Thin JSON-over-HTTP client for the forge REST API."""

    config: ClientConfig
    session: requests.Session | None = None
    logger: StructuredLogger | None = None
    _session: requests.Session = field(init=False, repr=False)
    _log: StructuredLogger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._session = self.session or requests.Session()
        self._session.headers.setdefault("Accept", "application/json")
        self._session.headers.setdefault("Content-Type", "application/json")
        self._session.headers.setdefault("User-Agent", USER_AGENT)
        if self.config.token:
            self._session.headers["Authorization"] = f"Bearer {self.config.token}"
        self._log = self.logger or StructuredLogger()

    def url_for(self, path: str) -> str:
        if path.startswith("http"):
            return path
        return f"{self.config.api_url.rstrip('/')}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any | None = None,
    ) -> JsonObject:
        url = self.url_for(path)
        clean_params = {k: v for k, v in (params or {}).items() if v not in (None, "")}
        start = time.perf_counter()
        response = self._session.request(
            method,
            url,
            params=clean_params or None,
            json=json_body,
            headers=self._session.headers,
            timeout=self.config.timeout,
        )
        self._log.log_request(
            method, url, response.status_code, (time.perf_counter() - start) * 1000
        )
        if response.status_code >= HTTP_ERROR_STATUS:
            text = response.text
            detail = f": {text.strip()}" if text and text.strip() else ""
            raise APIError(
                f"{method} {url} failed with HTTP {response.status_code}{detail}",
                status=response.status_code,
                response_text=text,
            )
        if not response.text or not response.text.strip():
            return {}
        try:
            data = response.json()
        except ValueError as exc:
            raise APIError(
                f"{method} {url} returned invalid JSON: {exc}",
                status=response.status_code,
                response_text=response.text,
            ) from exc
        if isinstance(data, dict):
            return data
        return {"items": data}

    def get(self, path: str, *, params: dict[str, Any] | None = None) -> JsonObject:
        return self.request("GET", path, params=params)

    def post(
        self,
        path: str,
        body: Any | None = None,
        *,
        params: dict[str, Any] | None = None,
    ) -> JsonObject:
        return self.request("POST", path, params=params, json_body=body if body is not None else {})

    def patch(self, path: str, body: Any | None = None) -> JsonObject:
        return self.request("PATCH", path, json_body=body if body is not None else {})


__all__ = ["APIError", "JsonObject", "SourceCraftClient", "USER_AGENT"]
