from __future__ import annotations

from typing import Dict

from PIL import Image

from ..core.types import OverlayResult
from ..utils.viz import to_pil


def build_image_artifacts(result: OverlayResult) -> Dict[str, Image.Image]:
    return {
        "original": to_pil(result.base).convert("RGB"),
        "heatmap": to_pil(result.heat_layer),
        "overlay": to_pil(result.composite),
    }
