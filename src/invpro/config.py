from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import os
import sys


@dataclass(frozen=True)
class AppPaths:
    base_dir: Path
    db_path: Path
    logs_dir: Path


@dataclass(frozen=True)
class AppSettings:
    remote_url: Optional[str] = None
    remote_key: Optional[str] = None
    remote_timeout: float = 10.0
    seed_demo: bool = True
    low_stock_threshold: int = 10
    tax_rate: float = 0.08

    @property
    def remote_enabled(self) -> bool:
        return bool(self.remote_url and self.remote_key)


def _windows_appdata() -> Path:
    return Path(os.environ.get("APPDATA", str(Path.home() / "AppData" / "Roaming")))


def _mac_app_support() -> Path:
    return Path.home() / "Library" / "Application Support"


def get_app_paths(app_name: str = "InventoryPro", env: Optional[dict] = None) -> AppPaths:
    """Per-user data dir; ``INVPRO_HOME`` overrides the platform default."""
    env = os.environ if env is None else env
    override = str(env.get("INVPRO_HOME", "") or "").strip()
    if override:
        base = Path(override).expanduser()
    elif sys.platform.startswith("win"):
        base = _windows_appdata() / app_name
    elif sys.platform == "darwin":
        base = _mac_app_support() / app_name
    else:
        base = Path.home() / f".{app_name.lower()}"

    logs = base / "logs"
    db = base / "inventory.db"

    base.mkdir(parents=True, exist_ok=True)
    logs.mkdir(parents=True, exist_ok=True)

    return AppPaths(base_dir=base, db_path=db, logs_dir=logs)


def load_settings(env: Optional[dict] = None) -> AppSettings:
    env = os.environ if env is None else env
    defaults = AppSettings()

    def get(name: str) -> str:
        return str(env.get(name, "") or "").strip()

    try:
        timeout = float(get("INVPRO_REMOTE_TIMEOUT") or defaults.remote_timeout)
        low_stock = int(get("INVPRO_LOW_STOCK") or defaults.low_stock_threshold)
        tax_rate = float(get("INVPRO_TAX_RATE") or defaults.tax_rate)
    except ValueError as e:
        raise ValueError(f"Invalid numeric setting: {e}") from e

    seed_raw = get("INVPRO_SEED_DEMO").lower()
    seed = defaults.seed_demo if not seed_raw else seed_raw in {"1", "true", "yes", "on"}

    return AppSettings(
        remote_url=get("INVPRO_REMOTE_URL") or None,
        remote_key=get("INVPRO_REMOTE_KEY") or None,
        remote_timeout=timeout,
        seed_demo=seed,
        low_stock_threshold=low_stock,
        tax_rate=tax_rate,
    )
