"""Module entrypoint for launching the player from the command line."""
from __future__ import annotations

import argparse
from typing import Any, Optional, Sequence


def _comma_list(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def _unit_interval(value: str) -> float:
    try:
        parsed = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected a number, got {value!r}") from exc
    if not 0.0 <= parsed <= 1.0:
        raise argparse.ArgumentTypeError("must be between 0 and 1")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ambient-player",
        description="Play music chosen from the sound, light, and weather around you.",
    )
    parser.add_argument(
        "--no-microphone",
        action="store_true",
        help="do not open the microphone",
    )
    parser.add_argument(
        "--no-camera",
        action="store_true",
        help="do not open the camera",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=None,
        metavar="SECONDS",
        help="stop after this many seconds (default: run until interrupted)",
    )
    parser.add_argument(
        "--recommend",
        action="store_true",
        help="ask for a recommendation as soon as the player starts",
    )

    profile = parser.add_argument_group("taste profile (saved for later sessions)")
    profile.add_argument("--genres", type=_comma_list, metavar="LIST", help="favorite genres, comma separated")
    profile.add_argument(
        "--exclude-genres",
        type=_comma_list,
        metavar="LIST",
        help="genres never to recommend, comma separated",
    )
    profile.add_argument("--moods", type=_comma_list, metavar="LIST", help="primary moods, comma separated")
    profile.add_argument("--energy", type=_unit_interval, metavar="0-1", help="target energy")
    profile.add_argument("--valence", type=_unit_interval, metavar="0-1", help="target valence")
    profile.add_argument(
        "--discovery",
        type=_unit_interval,
        metavar="0-1",
        help="how far recommendations may stray from favorite genres",
    )
    profile.add_argument(
        "--explicit",
        dest="explicit_content",
        action="store_const",
        const=True,
        default=None,
        help="allow explicit tracks",
    )
    profile.add_argument(
        "--no-explicit",
        dest="explicit_content",
        action="store_const",
        const=False,
        help="avoid explicit tracks",
    )
    return parser


def profile_updates_from_args(args: argparse.Namespace) -> dict[str, Any]:
    candidates = {
        "favorite_genres": args.genres,
        "excluded_genres": args.exclude_genres,
        "primary_moods": args.moods,
        "energy": args.energy,
        "valence": args.valence,
        "discovery_mode": args.discovery,
        "explicit_content": args.explicit_content,
    }
    return {name: value for name, value in candidates.items() if value is not None}


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.duration is not None and args.duration <= 0:
        parser.error("--duration must be positive")

    import app

    app.launch(
        microphone=not args.no_microphone,
        camera=not args.no_camera,
        duration_seconds=args.duration,
        recommend=args.recommend,
        profile_updates=profile_updates_from_args(args) or None,
    )


if __name__ == "__main__":
    main()
