from __future__ import annotations

from fastapi import FastAPI, File, UploadFile
from fastapi.responses import JSONResponse

from inkvision.overlay.backends.base import ClassifierBackend, ClassifyError
from inkvision.overlay.backends.factory import build_backend
from inkvision.overlay.config import OverlayConfig
from inkvision.overlay.decision import select_label
from inkvision.overlay.frames import decode_image
from inkvision.overlay.video_map import load_video_map


def create_app(config: OverlayConfig | None = None, backend: ClassifierBackend | None = None) -> FastAPI:
    app = FastAPI(title="Landmark Overlay", version="0.1.0")

    config = config or OverlayConfig.from_env()
    video_map = load_video_map(config.video_map_path)
    if backend is None:
        backend = build_backend(config)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/videos")
    def videos() -> dict[str, str]:
        return dict(video_map)

    @app.post("/classify")
    async def classify(file: UploadFile = File(...), is_playing: bool = False):
        try:
            image = decode_image(await file.read())
        except ValueError as exc:
            return JSONResponse({"status": "rejected", "reason": str(exc)}, status_code=400)

        try:
            candidates = backend.classify(image)
        except ClassifyError as exc:
            return JSONResponse(
                {"status": "unavailable", "reason": str(exc), "accepted_label": None},
                status_code=503,
            )

        accepted = select_label(config, candidates, is_playing=is_playing, known_labels=set(video_map))
        payload = {
            "status": "ok",
            "accepted_label": accepted,
            "video": video_map.get(accepted) if accepted is not None else None,
            "candidates": [
                {"label": item.label, "confidence": round(item.confidence, 4)} for item in candidates
            ],
        }
        return JSONResponse(payload)

    return app


def main() -> int:
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=8080)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
