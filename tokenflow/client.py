from __future__ import annotations
from typing import Any, Dict, Optional, Union

import requests
from loguru import logger

from .errors import SteppingServiceError
from .payload import build_payload
from .region import RegionNode
from .settings import Settings


class SteppingClient:
    """Talks to the backend stepping service.

    Each call sends the compiled tree plus the previous response and returns
    the next execution state as decoded JSON.
    """

    def __init__(self, url: Optional[str] = None, timeout_s: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        settings = Settings.from_env()
        self.url = url or settings.backend_url
        self.timeout_s = timeout_s if timeout_s is not None else settings.timeout_s
        self.http = session or requests.Session()

    def execute_step(self, tree: Union[RegionNode, Dict[str, Any]],
                     prior_state: Optional[Dict[str, Any]] = None,
                     preview: bool = False) -> Dict[str, Any]:
        payload = build_payload(tree, prior_state)
        payload.preview = preview
        body = payload.to_dict()
        logger.debug(f"[client] POST {self.url} (prior_state={'yes' if prior_state else 'no'})")
        try:
            r = self.http.post(self.url, json=body, timeout=self.timeout_s)
        except requests.RequestException as e:
            logger.error(f"[client] Request to {self.url} failed: {e}")
            raise SteppingServiceError(f"Request to {self.url} failed: {e}") from e

        if not r.ok:
            raise SteppingServiceError(f"Backend Error {r.status_code}: {r.text}", status_code=r.status_code)
        try:
            return r.json()
        except ValueError as e:
            raise SteppingServiceError(f"Backend returned invalid JSON: {e}", status_code=r.status_code) from e
