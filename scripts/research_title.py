#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import replace

from content_research.config import get_settings
from content_research.models.records import to_json_dict
from content_research.models.requests import (
    BookRequest,
    MovieRequest,
    MusicRequest,
    ResearchRequest,
    SeriesRequest,
)
from content_research.research.engine import create_engine


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="research_title",
        description="Research one movie, series, song or book and print the merged record as JSON.",
    )
    parser.add_argument("kind", choices=("movie", "series", "music", "book"))
    parser.add_argument("title")
    parser.add_argument("--year", type=int, default=None)
    parser.add_argument("--artist", help="Artist (required for music).")
    parser.add_argument("--author")
    parser.add_argument("--director")
    parser.add_argument("--cast", action="append", default=[], help="Cast member; repeat for several.")
    parser.add_argument("--creator")
    parser.add_argument("--network")
    parser.add_argument("--album")
    parser.add_argument("--isbn")
    parser.add_argument("--genre")
    parser.add_argument("--regions", help="Comma-separated movie regions, overriding RESEARCH_REGIONS.")
    parser.add_argument("--sources", action="store_true", help="Also print per-source status.")
    return parser.parse_args(argv)


def _build_request(args: argparse.Namespace) -> ResearchRequest:
    if args.kind == "movie":
        if args.year is None:
            raise SystemExit("--year is required for movie research.")
        return MovieRequest(
            title=args.title,
            year=args.year,
            director=args.director,
            cast=tuple(args.cast),
            genre=args.genre,
        )
    if args.kind == "series":
        return SeriesRequest(
            title=args.title,
            year=args.year,
            creator=args.creator,
            network=args.network,
            genre=args.genre,
        )
    if args.kind == "music":
        if not args.artist:
            raise SystemExit("--artist is required for music research.")
        return MusicRequest(title=args.title, artist=args.artist, year=args.year, album=args.album, genre=args.genre)
    return BookRequest(title=args.title, author=args.author, year=args.year, isbn=args.isbn, genre=args.genre)


async def _research(args: argparse.Namespace) -> dict:
    settings = get_settings()
    if args.regions:
        regions = tuple(r.strip().upper() for r in args.regions.split(",") if r.strip())
        if regions:
            settings = replace(settings, regions=regions)
    engine = await create_engine(settings)
    report = await engine.research(_build_request(args))
    out = {"data": to_json_dict(report.record)}
    if args.sources:
        out["sources"] = report.source_statuses()
    return out


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv if argv is not None else sys.argv[1:])
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    result = asyncio.run(_research(args))
    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
