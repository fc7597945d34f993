from __future__ import annotations

from typing import Optional, Tuple

import gradio as gr
from PIL import Image

from ..core.pipeline import run_overlay, validate_options
from ..core.types import ColorMapKind, NormalizationKind
from ..heatmap.render import build_image_artifacts
from ..utils.errors import UserFacingError, friendly_error
from ..utils.viz import crop_center
from .state import AppState


VIEW_MODES = ["overlay", "heatmap", "original"]


def build_app():
    with gr.Blocks(title="MedHeat Overlay") as demo:
        gr.Markdown("# MedHeat Overlay")
        gr.Markdown("Upload a medical image (.dcm, .png, .jpg) and a heatmap (.json, .csv, .bin) to overlay them.")
        gr.Markdown("Without a heatmap a synthetic gradient is drawn; without an image a demo ramp is used.")

        with gr.Tabs():
            with gr.TabItem("Overlay"):
                _overlay_tab()
            with gr.TabItem("Formats"):
                _formats_tab()

    return demo


def _overlay_tab():
    state = gr.State(AppState())
    with gr.Row():
        image_input = gr.File(label="Base image")
        heatmap_input = gr.File(label="Heatmap data (optional)")

    with gr.Row():
        colormap = gr.Dropdown(label="Colormap", choices=ColorMapKind.names(), value=ColorMapKind.HOT.value)
        normalization = gr.Radio(
            label="Normalization", choices=NormalizationKind.names(), value=NormalizationKind.MINMAX.value
        )
        opacity = gr.Slider(label="Opacity", minimum=0.0, maximum=1.0, value=0.5)

    with gr.Row():
        view_mode = gr.Radio(label="View", choices=VIEW_MODES, value="overlay")
        crop_size = gr.Slider(label="Zoom (crop size)", minimum=0.2, maximum=1.0, value=1.0)
        crop_x = gr.Slider(label="Center X", minimum=0.0, maximum=1.0, value=0.5)
        crop_y = gr.Slider(label="Center Y", minimum=0.0, maximum=1.0, value=0.5)

    run_btn = gr.Button("Render")
    status = gr.Markdown("")
    output = gr.Image(label="Result", type="pil")

    run_btn.click(
        fn=_run_overlay,
        inputs=[state, image_input, heatmap_input, colormap, normalization, opacity, view_mode, crop_size, crop_x, crop_y],
        outputs=[state, output, status],
    )
    for control in (view_mode, crop_size, crop_x, crop_y):
        control.change(
            fn=_refresh_view,
            inputs=[state, view_mode, crop_size, crop_x, crop_y],
            outputs=[output],
        )


def _formats_tab():
    gr.Markdown(_formats_help_text())


def _file_path(file_obj) -> Optional[str]:
    if file_obj is None:
        return None
    return getattr(file_obj, "name", file_obj)


def _run_overlay(state: AppState, image_file, heatmap_file, colormap: str, normalization: str, opacity: float,
                 view: str, crop_size: float, crop_x: float, crop_y: float) -> Tuple[AppState, Optional[Image.Image], str]:
    image_path = _file_path(image_file)
    heatmap_path = _file_path(heatmap_file)
    try:
        options, heatmap_format = validate_options(colormap, normalization, opacity, heatmap_path)
        result = run_overlay(image_path, options, heatmap_path, heatmap_format)
    except UserFacingError as exc:
        return AppState(), None, friendly_error(str(exc))

    state = AppState(result=result, artifacts=build_image_artifacts(result))
    return state, _select_view_image(state, view, crop_size, crop_x, crop_y), _format_status(result)


def _refresh_view(state: AppState, view: str, crop_size: float, crop_x: float, crop_y: float):
    return _select_view_image(state, view, crop_size, crop_x, crop_y)


def _select_view_image(state: AppState, view: str, crop_size: float, crop_x: float, crop_y: float):
    if state is None or not state.artifacts:
        return None
    img = state.artifacts.get(view) or state.artifacts.get("overlay")
    return crop_center(img, crop_x, crop_y, crop_size)


def _format_status(result) -> str:
    notes = []
    if result.used_demo_base:
        notes.append("demo base image")
    if result.used_gradient_heatmap:
        notes.append("synthetic gradient heatmap")
    size = f"{result.composite.width}x{result.composite.height}"
    if not notes:
        return f"Rendered {size}."
    return f"Rendered {size} using {' and '.join(notes)}."


def _formats_help_text() -> str:
    return (
        "Heatmap formats:\n"
        "- JSON: `{\"data\": [[0.1, 0.2], [0.3, 0.4]]}`; the first row sets the width.\n"
        "- CSV: no header, one row per line, comma-separated numbers.\n"
        "- Binary (.bin): little-endian u32 rows, u32 cols, then rows*cols float32 values.\n"
        "- NumPy (.npy): not supported yet."
    )
