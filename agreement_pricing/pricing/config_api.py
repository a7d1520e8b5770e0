# agreement_pricing/pricing/config_api.py
from typing import Any, Dict, List, Optional

import httpx
from rich.console import Console

from ..config import (
    ACTIVE_CONFIG_PATH,
    ALL_PRICING_PATH,
    API_BASE_URL,
    API_TOKEN,
    REQUEST_TIMEOUT,
)

console = Console()


def _extract_config(resp: Any) -> Optional[Dict[str, Any]]:
    """Unwrap ``{"config": {...}}``; a 404 means the service has no active config."""
    if getattr(resp, "status_code", 200) == 404:
        return None
    resp.raise_for_status()
    data = resp.json()
    if not isinstance(data, dict):
        return None
    cfg = data.get("config")
    if cfg is None and isinstance(data.get("data"), dict):
        cfg = data["data"].get("config")
    return cfg if isinstance(cfg, dict) else None


def _pricing_entries(data: Any) -> List[Dict[str, Any]]:
    if isinstance(data, dict):
        for k in ("services", "data", "items", "configs"):
            if isinstance(data.get(k), list):
                return [e for e in data[k] if isinstance(e, dict)]
        # mapping of serviceId -> config
        return [{"serviceId": k, "config": v} for k, v in data.items() if isinstance(v, dict)]
    if isinstance(data, list):
        return [e for e in data if isinstance(e, dict)]
    return []


class ServiceConfigClient:
    """Reads published service configs from the admin backend.

    Transport and HTTP errors propagate as ``httpx.HTTPError``; the rate
    resolver decides how to degrade.
    """

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        token: str = API_TOKEN,
        timeout: float = REQUEST_TIMEOUT,
        debug: bool = False,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.debug = debug
        self._all_pricing: Optional[Dict[str, Dict[str, Any]]] = None

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _timeout(self) -> Any:
        return httpx.Timeout(self.timeout, connect=min(10.0, self.timeout))

    def get_active_config(self, service_id: str) -> Optional[Dict[str, Any]]:
        url = f"{self.base_url}{ACTIVE_CONFIG_PATH}"
        if self.debug:
            console.print(f"[cyan]get_active_config[{service_id}]: {url}[/cyan]")
        client = httpx.Client(timeout=self._timeout())
        try:
            resp = client.get(url, params={"serviceId": service_id}, headers=self._headers())
        finally:
            client.close()
        return _extract_config(resp)

    def get_all_pricing(self) -> Dict[str, Dict[str, Any]]:
        """All published configs keyed by service id (fetched once per client)."""
        if self._all_pricing is not None:
            return self._all_pricing
        url = f"{self.base_url}{ALL_PRICING_PATH}"
        if self.debug:
            console.print(f"[cyan]get_all_pricing: {url}[/cyan]")
        client = httpx.Client(timeout=self._timeout())
        try:
            resp = client.get(url, headers=self._headers())
            resp.raise_for_status()
            data = resp.json()
        finally:
            client.close()

        out: Dict[str, Dict[str, Any]] = {}
        for entry in _pricing_entries(data):
            sid = entry.get("serviceId") or entry.get("service_id")
            cfg = entry.get("config")
            if sid and isinstance(cfg, dict):
                out[str(sid)] = cfg
        self._all_pricing = out
        if self.debug:
            console.print(f"[cyan]get_all_pricing: {len(out)} services[/cyan]")
        return out

    def get_pricing_config(self, service_id: str) -> Optional[Dict[str, Any]]:
        return self.get_all_pricing().get(service_id)

    async def aget_active_config(self, service_id: str) -> Optional[Dict[str, Any]]:
        url = f"{self.base_url}{ACTIVE_CONFIG_PATH}"
        async with httpx.AsyncClient(timeout=self._timeout()) as client:
            resp = await client.get(url, params={"serviceId": service_id}, headers=self._headers())
        return _extract_config(resp)
