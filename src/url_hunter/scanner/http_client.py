"""Outbound probing backed by ``requests``."""

from __future__ import annotations

import threading
from typing import Optional, Protocol

import requests
import urllib3

from ..core.errors import ProbeError
from ..core.models import ProbeResponse

DEFAULT_TIMEOUT = 10


class HttpClient(Protocol):
    def send(self, url: str) -> ProbeResponse: ...


class RequestsHttpClient:
    """Issues single GET probes; each worker thread gets its own session."""

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        verify_tls: bool = False,
        user_agent: Optional[str] = None,
        allow_redirects: bool = False,
    ) -> None:
        self.timeout = timeout
        self.verify_tls = verify_tls
        self.user_agent = user_agent
        self.allow_redirects = allow_redirects
        self._local = threading.local()
        if not verify_tls:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def _session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.verify = self.verify_tls
            if self.user_agent:
                session.headers["User-Agent"] = self.user_agent
            self._local.session = session
        return session

    def send(self, url: str) -> ProbeResponse:
        try:
            response = self._session().get(
                url,
                timeout=self.timeout,
                allow_redirects=self.allow_redirects,
            )
        except (requests.RequestException, urllib3.exceptions.HTTPError) as exc:
            raise ProbeError(f"{url}: {exc}") from exc

        content = response.content or b""
        try:
            text = content.decode(response.encoding or "utf-8", errors="replace")
        except LookupError:
            text = content.decode("utf-8", errors="replace")
        return ProbeResponse(
            status_code=response.status_code,
            body_length=len(content),
            body_text=text,
        )
