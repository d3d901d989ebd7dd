"""
HTTP/JSON router backend.

Talks to a router management API (or a small gateway in front of one) that
speaks JSON:

    POST   /auth            {"username", "password"} -> {"token": "..."}
    GET    /devices         -> [{"mac": "...", "name": "..."}, ...]
                               (MACs may use ":", "-" or no separator)
    GET    /filters         -> [{"mac": "...", "name": "..."}, ...]
    POST   /filters         {"mac": "..."}
    DELETE /filters/{mac}
    DELETE /filters
"""

import threading
from typing import Dict, Any, List, Optional
from urllib.parse import quote

import httpx

from yip.yip_logging import get_logger
from yip.routers.base import Device, RouterBackend, RouterError, canonical_mac

log = get_logger("YIP.Router.Http")


class HttpRouter(RouterBackend):
    """
    Router backend over a JSON HTTP API.

    Config:
        base_url: API root, e.g. "http://192.168.1.1/api"
        username / password: credentials for POST /auth (optional)
        timeout_s: per-request timeout (default 10)
        verify_tls: verify HTTPS certificates (default True)
    """

    def __init__(self, name: str, config: Dict[str, Any], client: Optional[httpx.Client] = None):
        super().__init__(name, config)

        base_url = str(config.get("base_url") or "").rstrip("/")
        if not base_url:
            raise ValueError("HttpRouter requires 'base_url'")

        self.base_url = base_url
        self.username = config.get("username")
        self.password = config.get("password")
        self.timeout_s = float(config.get("timeout_s", 10.0))
        self.verify_tls = bool(config.get("verify_tls", True))

        self._client = client
        self._owns_client = client is None
        self._token: Optional[str] = None
        self._token_lock = threading.Lock()
        self._last_error: Optional[str] = None

    def start(self) -> None:
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.base_url,
                timeout=self.timeout_s,
                verify=self.verify_tls,
            )
            self._owns_client = True
        self._mark_started()

    def stop(self) -> None:
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None
        self._mark_stopped()

    def health(self) -> Dict[str, Any]:
        status = "degraded" if self._last_error else "healthy"
        return {
            "status": status,
            "message": self._last_error or f"Using {self.base_url}",
            "details": {
                "base_url": self.base_url,
                "authenticated": self._token is not None,
            },
        }

    def refresh_token(self) -> None:
        if not self.username:
            # Router API without authentication.
            return
        data = self._request(
            "POST",
            "/auth",
            json={"username": self.username, "password": self.password},
            authenticated=False,
        )
        token = data.get("token") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            self._fail("auth", "response carries no token")
        with self._token_lock:
            self._token = token
        log.info("YIP.Router.Authenticated", extra={"fields": {"base_url": self.base_url}})

    def list_devices(self) -> List[Device]:
        return self._parse_devices(self._request("GET", "/devices"))

    def get_filtered_devices(self) -> List[Device]:
        return self._parse_devices(self._request("GET", "/filters"))

    def filter_device_by_mac(self, mac: str) -> None:
        self._request("POST", "/filters", json={"mac": mac})

    def unfilter_device_by_mac(self, mac: str) -> None:
        self._request("DELETE", f"/filters/{quote(mac, safe='')}")

    def clear_mac_filters(self) -> None:
        self._request("DELETE", "/filters")

    def _headers(self) -> Dict[str, str]:
        with self._token_lock:
            token = self._token
        if token is None and self.username:
            self.refresh_token()
            with self._token_lock:
                token = self._token
        return {"Authorization": f"Bearer {token}"} if token else {}

    def _request(self, method: str, path: str, *, json: Any = None, authenticated: bool = True) -> Any:
        if self._client is None:
            raise RouterError(f"Router backend '{self.name}' is not started")

        headers = self._headers() if authenticated else {}
        try:
            resp = self._client.request(method, path, json=json, headers=headers)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            self._fail(f"{method} {path}", repr(exc), exc)

        self._last_error = None
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            self._fail(f"{method} {path}", "response is not JSON", exc)

    def _fail(self, op: str, reason: str, cause: Optional[BaseException] = None) -> None:
        self._last_error = f"{op}: {reason}"
        log.warning("YIP.Router.RequestFailed", extra={"fields": {"op": op, "error": reason}})
        raise RouterError(f"{op} failed: {reason}") from cause

    def _parse_devices(self, payload: Any) -> List[Device]:
        if isinstance(payload, dict):
            payload = payload.get("devices")
        if not isinstance(payload, list):
            self._fail("parse devices", "expected a list of devices")

        devices: List[Device] = []
        for item in payload:
            mac = canonical_mac(item["mac"]) if isinstance(item, dict) and item.get("mac") else None
            if mac is None:
                self._fail("parse devices", f"invalid device entry {item!r}")
            devices.append(Device(mac_address=mac, name=str(item.get("name") or "")))
        return devices
