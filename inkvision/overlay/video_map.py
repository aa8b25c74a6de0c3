from __future__ import annotations

import json
from pathlib import Path


LOCAL_PREFIX = "local:"

DEFAULT_VIDEO_MAP: dict[str, str] = {
    "Taj Mahal": "https://cdn.pixabay.com/video/2019/05/13/23592-337668424_medium.mp4",
    "Colosseum": "https://cdn.pixabay.com/video/2024/03/16/204384-924209301_medium.mp4",
    "Eiffel Tower": "https://cdn.pixabay.com/video/2024/12/25/248701_tiny.mp4",
    "Statue of Liberty": "https://cdn.pixabay.com/video/2015/11/25/1366-147055432_medium.mp4",
    "Golden Gate Bridge": "https://cdn.pixabay.com/video/2018/09/24/18392-291585315_small.mp4",
    "Leaning Tower Of Pisa": "https://cdn.pixabay.com/video/2022/04/19/114507-701051365_tiny.mp4",
}


def load_video_map(path: str | Path = "") -> dict[str, str]:
    """Label -> locator map; a JSON file replaces the built-in map entirely."""
    if not path:
        return dict(DEFAULT_VIDEO_MAP)

    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"video map {path} must be a JSON object of label -> locator")
    return {str(label).strip(): str(locator).strip() for label, locator in data.items() if str(label).strip()}


def is_local_locator(locator: str) -> bool:
    return locator.startswith(LOCAL_PREFIX)
