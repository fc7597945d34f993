from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from types import MappingProxyType
from typing import Mapping, Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

DEFAULT_COLORMAP = os.getenv("MEDHEAT_COLORMAP", "hot")
DEFAULT_NORMALIZATION = os.getenv("MEDHEAT_NORMALIZATION", "minmax")
DEFAULT_OPACITY = os.getenv("MEDHEAT_OPACITY", "0.5")

TUBERCULOSIS_SERVICE = "tuberculosis_service"
DEFAULT_TB_URL = "http://tuberculosis_service:50001/deep-learning/service/tuberculosis/image_binary"


@dataclass(frozen=True)
class ServiceConfig:
    url: str
    data: Optional[str] = None
    headers: Mapping[str, str] = field(default_factory=dict)
    service: str = ""


@dataclass(frozen=True)
class OrchestrateConfig:
    """Static registry of downstream services.

    Kept for deployments that read it; the overlay pipeline never does.
    """
    service_host: str = "0.0.0.0"
    service_port: int = 50011
    service_db_path: str = "config/service_db_v8.csv"
    config_services: Mapping[str, ServiceConfig] = field(default_factory=dict)

    @classmethod
    def from_env(cls) -> "OrchestrateConfig":
        tb = ServiceConfig(
            url=os.getenv("DL_URL_TB", DEFAULT_TB_URL),
            headers=MappingProxyType({"Content-Type": "application/x-image"}),
            service=TUBERCULOSIS_SERVICE,
        )
        return cls(config_services=MappingProxyType({TUBERCULOSIS_SERVICE: tb}))


@lru_cache(maxsize=1)
def get_orchestrate_config() -> OrchestrateConfig:
    return OrchestrateConfig.from_env()
