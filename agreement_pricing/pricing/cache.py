import json
import os
from typing import Any, Dict, Optional

from rich.console import Console

from ..config import CONFIG_CACHE_FILE

console = Console()
_config_cache: Dict[str, Dict[str, Any]] = {}

# Bump when the cache layout changes (old files are then ignored).
CACHE_VERSION = "v1"


def load_config_cache(path: Optional[str] = None) -> None:
    global _config_cache
    path = path or CONFIG_CACHE_FILE
    if not os.path.exists(path):
        _config_cache = {}
        return
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as ex:
        console.print(f"[yellow]Warning: failed to load {path}: {ex}[/yellow]")
        _config_cache = {}
        return
    if not isinstance(data, dict) or data.get("version") != CACHE_VERSION:
        _config_cache = {}
        return
    services = data.get("services")
    _config_cache = services if isinstance(services, dict) else {}


def save_config_cache(path: Optional[str] = None) -> None:
    path = path or CONFIG_CACHE_FILE
    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump({"version": CACHE_VERSION, "services": _config_cache}, f, indent=2, ensure_ascii=False)
    except OSError as ex:
        console.print(f"[yellow]Warning: failed to save {path}: {ex}[/yellow]")


def get_cached_config(service_id: str) -> Optional[Dict[str, Any]]:
    return _config_cache.get(service_id)


def set_cached_config(service_id: str, config: Dict[str, Any]) -> None:
    _config_cache[service_id] = config
