import logging
import os
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class DuotoneSettings:
    port: int
    timeout: float
    primary_color: str
    secondary_color: str
    threshold: float
    crunch: int
    asset_root: str
    allowed_hosts: Tuple[str, ...]
    log_level: str

    @classmethod
    def from_env(cls) -> "DuotoneSettings":
        return cls(
            port=int(os.getenv("PORT", "5600")),
            timeout=float(os.getenv("SOURCE_TIMEOUT", "10.0")),
            primary_color=os.getenv("PRIMARY_COLOR", "#FFFFFF"),
            secondary_color=os.getenv("SECONDARY_COLOR", "#000000"),
            threshold=float(os.getenv("THRESHOLD", "128")),
            crunch=int(os.getenv("CRUNCH", "1")),
            asset_root=os.getenv("ASSET_ROOT", "assets"),
            allowed_hosts=tuple(
                host.strip().lower() for host in os.getenv("ALLOWED_HOSTS", "").split(",") if host.strip()
            ),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


SETTINGS = DuotoneSettings.from_env()


def configure_logging() -> logging.Logger:
    logging.basicConfig(level=SETTINGS.log_level)
    return logging.getLogger("duotone")
