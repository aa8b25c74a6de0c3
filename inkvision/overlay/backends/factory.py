from __future__ import annotations

from inkvision.overlay.backends.base import ClassifierBackend
from inkvision.overlay.config import OverlayConfig


def build_backend(config: OverlayConfig) -> ClassifierBackend:
    if config.backend_mode == "tfhub":
        from inkvision.overlay.backends.tfhub_classifier import TFHubLandmarkBackend

        return TFHubLandmarkBackend(
            model_handle=config.tfhub_model_handle,
            label_map_url=config.label_map_url,
            top_k=config.top_k,
        )
    if config.backend_mode == "scripted":
        from inkvision.overlay.backends.scripted import ScriptedBackend

        if not config.script_path:
            raise ValueError("SCRIPT_PATH is required when BACKEND_MODE=scripted")
        return ScriptedBackend.from_file(config.script_path)

    from inkvision.overlay.backends.pickled_model import PickledModelBackend

    return PickledModelBackend(model_path=config.model_path, top_k=config.top_k)
