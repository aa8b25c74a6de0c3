"""Runtime landmark overlay package."""

from inkvision.overlay.config import OverlayConfig
from inkvision.overlay.gating import Action, DebounceEngine, DetectionState

__all__ = ["OverlayConfig", "Action", "DebounceEngine", "DetectionState"]
