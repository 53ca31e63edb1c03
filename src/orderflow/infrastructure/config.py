"""Runtime settings, read once from ``ORDERFLOW_*`` environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from orderflow.domain.exceptions import ValidationError

# Resolve data directory relative to the project root.
# When installed in editable mode the project root is the repo root.
_DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"

GATEWAY_ADAPTERS = ("fake", "razorpay")
CARRIER_ADAPTERS = ("fake", "delhivery")


@dataclass(frozen=True)
class Settings:
    data_dir: Path = _DEFAULT_DATA_DIR
    environment: str = "development"
    log_level: str = "INFO"
    order_prefix: str = "ORD"

    gateway: str = "fake"
    razorpay_key_id: str = ""
    razorpay_key_secret: str = ""
    razorpay_base_url: str = "https://api.razorpay.com/v1"

    carrier: str = "fake"
    delhivery_token: str = ""
    delhivery_base_url: str = "https://track.delhivery.com"
    delhivery_pickup_location: str = ""

    http_timeout_seconds: float = 15.0
    sync_interval_seconds: float = 12.0
    sync_batch_limit: int = 100
    pending_max_age_hours: float = 12.0
    refund_stale_minutes: float = 15.0

    def __post_init__(self) -> None:
        if self.gateway not in GATEWAY_ADAPTERS:
            raise ValidationError(
                f"ORDERFLOW_GATEWAY must be one of {', '.join(GATEWAY_ADAPTERS)}"
            )
        if self.carrier not in CARRIER_ADAPTERS:
            raise ValidationError(
                f"ORDERFLOW_CARRIER must be one of {', '.join(CARRIER_ADAPTERS)}"
            )
        if self.gateway == "razorpay" and not (
            self.razorpay_key_id and self.razorpay_key_secret
        ):
            raise ValidationError("Razorpay gateway needs a key id and key secret")
        if self.refund_stale_minutes <= 0:
            raise ValidationError("ORDERFLOW_REFUND_STALE_MINUTES must be positive")
        if self.carrier == "delhivery" and not self.delhivery_token:
            raise ValidationError("Delhivery carrier needs an API token")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ

        def get(name: str, default: str) -> str:
            return env.get(f"ORDERFLOW_{name}", default)

        try:
            return cls(
                data_dir=Path(get("DATA_DIR", str(_DEFAULT_DATA_DIR))),
                environment=get("ENV", "development").lower(),
                log_level=get("LOG_LEVEL", "INFO").upper(),
                order_prefix=get("ORDER_PREFIX", "ORD"),
                gateway=get("GATEWAY", "fake").lower(),
                razorpay_key_id=get("RAZORPAY_KEY_ID", ""),
                razorpay_key_secret=get("RAZORPAY_KEY_SECRET", ""),
                razorpay_base_url=get("RAZORPAY_BASE_URL", cls.razorpay_base_url),
                carrier=get("CARRIER", "fake").lower(),
                delhivery_token=get("DELHIVERY_TOKEN", ""),
                delhivery_base_url=get("DELHIVERY_BASE_URL", cls.delhivery_base_url),
                delhivery_pickup_location=get("DELHIVERY_PICKUP_LOCATION", ""),
                http_timeout_seconds=float(get("HTTP_TIMEOUT", "15")),
                sync_interval_seconds=float(get("SYNC_INTERVAL", "12")),
                sync_batch_limit=int(get("SYNC_LIMIT", "100")),
                pending_max_age_hours=float(get("PENDING_MAX_AGE_HOURS", "12")),
                refund_stale_minutes=float(get("REFUND_STALE_MINUTES", "15")),
            )
        except ValueError as exc:
            raise ValidationError(f"Invalid ORDERFLOW_* setting: {exc}") from exc
