"""Google Ads API credentials, from env vars or a google-ads.yaml file."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

ENV_PREFIX = "ADSDASH_GOOGLE_ADS_"
REQUIRED_KEYS = ("developer_token", "client_id", "client_secret", "refresh_token", "customer_id")


class GoogleAdsConfigError(ValueError):
    pass


@dataclass
class GoogleAdsConfig:
    developer_token: str
    client_id: str
    client_secret: str
    refresh_token: str
    customer_id: str
    login_customer_id: Optional[str] = None

    def client_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "developer_token": self.developer_token,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "refresh_token": self.refresh_token,
            "use_proto_plus": True,
        }
        if self.login_customer_id:
            payload["login_customer_id"] = self.login_customer_id
        return payload


def _customer(v) -> str:
    # The UI shows ids as 123-456-7890; the API wants digits only.
    return str(v or "").replace("-", "").strip()


def load_google_ads_config(customer_id: Optional[str] = None, yaml_path: Optional[str] = None) -> GoogleAdsConfig:
    """Resolve credentials; env vars win over the yaml file.

    The yaml path is *yaml_path*, else ``ADSDASH_GOOGLE_ADS_YAML``, else
    ``google-ads.yaml`` in the working directory.
    """
    cfg_path = Path(yaml_path or os.environ.get(ENV_PREFIX + "YAML") or "google-ads.yaml")
    raw: Dict[str, Any] = {}
    if cfg_path.exists():
        raw = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}

    def pick(key: str) -> str:
        return str(os.environ.get(ENV_PREFIX + key.upper()) or raw.get(key) or "").strip()

    values = {key: pick(key) for key in REQUIRED_KEYS}
    values["customer_id"] = _customer(customer_id or values["customer_id"])

    missing = [key for key in REQUIRED_KEYS if not values[key]]
    if missing:
        raise GoogleAdsConfigError(
            "Missing Google Ads config: " + ", ".join(missing) + ". "
            f"Set {ENV_PREFIX}* env vars or provide google-ads.yaml."
        )

    return GoogleAdsConfig(login_customer_id=_customer(pick("login_customer_id")) or None, **values)
