from __future__ import annotations

import argparse
import logging
from typing import Sequence

from inkvision.overlay.backends.base import Candidate, ClassifyError
from inkvision.overlay.backends.factory import build_backend
from inkvision.overlay.config import OverlayConfig
from inkvision.overlay.decision import select_label
from inkvision.overlay.playback import FfplaySink, HeadlessPlaybackSink, PlaybackController, PlaybackSink
from inkvision.overlay.service import OverlayService
from inkvision.overlay.video_map import load_video_map


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Landmark video overlay")
    subparsers = parser.add_subparsers(dest="command", required=True)

    start = subparsers.add_parser("start", help="Run a live recognition session")
    start.add_argument("--image", default="", help="Classify this still image instead of the camera")
    start.add_argument("--max-ticks", type=int, default=0, help="Stop after N ticks (0=run forever)")

    subparsers.add_parser("status", help="Print readiness")

    classify = subparsers.add_parser("classify", help="Classify one image and print the filter verdict")
    classify.add_argument("image", help="Image file to classify")
    classify.add_argument("--playing", action="store_true", help="Apply the keep-alive thresholds")

    simulate = subparsers.add_parser("simulate", help="Replay scripted candidates through the state machine")
    simulate.add_argument("script", help="JSON list of ticks; each tick is a list of [label, confidence] or null")
    return parser


def _build_sink(config: OverlayConfig) -> PlaybackSink:
    if config.player_mode == "headless":
        return HeadlessPlaybackSink(duration_seconds=config.headless_duration_seconds)
    return FfplaySink()


def _build_service(config: OverlayConfig, sink: PlaybackSink | None = None) -> OverlayService:
    playback = PlaybackController(
        sink=sink or _build_sink(config),
        video_map=load_video_map(config.video_map_path),
        assets_dir=config.assets_dir,
    )
    return OverlayService(config=config, playback=playback)


def run_simulation(service: OverlayService, ticks: Sequence[list[Candidate] | None]) -> list[str]:
    lines = []
    for idx, candidates in enumerate(ticks, start=1):
        if candidates is None:
            result = None
            action = service.process_failure(ClassifyError("scripted inference failure"))
        else:
            result = service.filter_candidates(candidates)
            action = service.process_result(result)
        state = service.engine.state
        lines.append(
            f"tick={idx} result={result if result is not None else '-'} action={action.kind.value}"
            f"{' ' + action.label if action.label else ''} state={state.phase}"
            f" pending={state.pending.streak}"
            f" misses={state.playing.non_detection_streak if state.playing else 0}"
        )
    return lines


def _format_candidates(candidates: Sequence[Candidate]) -> str:
    return ", ".join(f"{item.label}={item.confidence:.3f}" for item in candidates) or "(none)"


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    if args.command == "status":
        print("overlay_ready")
        return 0

    config = OverlayConfig.from_env()
    logging.basicConfig(level=getattr(logging, config.log_level, logging.INFO))

    if args.command == "simulate":
        from inkvision.overlay.backends.scripted import load_script

        service = _build_service(config, sink=HeadlessPlaybackSink())
        for line in run_simulation(service, load_script(args.script)):
            print(line)
        service.shutdown()
        return 0

    backend = build_backend(config)

    if args.command == "classify":
        from inkvision.overlay.frames import read_image

        image = read_image(args.image)
        try:
            candidates = backend.classify(image)
        except ClassifyError as exc:
            print(f"classify_failed:{exc}")
            return 1
        known_labels = set(load_video_map(config.video_map_path))
        verdict = select_label(config, candidates, is_playing=args.playing, known_labels=known_labels)
        print(f"candidates: {_format_candidates(candidates)}")
        print(f"accepted: {verdict}" if verdict is not None else "accepted: none")
        return 0

    from inkvision.overlay.frames import CameraFrameProvider, StillImageFrameProvider
    from inkvision.overlay.session import OverlaySession

    frames = StillImageFrameProvider(args.image) if args.image else CameraFrameProvider(config.camera_device)
    session = OverlaySession(
        service=_build_service(config),
        frames=frames,
        backend=backend,
        tick_interval_seconds=config.tick_interval_seconds,
    )
    logging.info(
        "Starting overlay session (backend=%s player=%s interval=%.1fs)",
        config.backend_mode,
        config.player_mode,
        config.tick_interval_seconds,
    )
    try:
        session.run(max_ticks=args.max_ticks)
    except KeyboardInterrupt:
        logging.info("Interrupted, session torn down")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
