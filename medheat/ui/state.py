from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from PIL import Image

from ..core.types import OverlayResult


@dataclass
class AppState:
    result: Optional[OverlayResult] = None
    artifacts: Dict[str, Image.Image] = field(default_factory=dict)
