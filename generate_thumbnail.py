#!/usr/bin/env python3
"""
Generate YouTube titles and a matching thumbnail in one go.

Usage:
    python generate_thumbnail.py --topic "How to learn React in 2024" --subject me.jpg
    python generate_thumbnail.py --topic "..." --language ar --pick 3 --subject me.jpg
    python generate_thumbnail.py --topic "..." --subject a.jpg --subject2 b.jpg --layout "Versus/Comparison"
    python generate_thumbnail.py --topic "..." --subject me.jpg --reference ref.png --edit "make the text yellow"

Configuration: .env (GEMINI_API_KEY) + optional data/optimizer_config.json
"""

import argparse
import asyncio
import sys
from pathlib import Path

from src.content_optimizer.client import GenerationClient
from src.content_optimizer.config import load_config, resolve_output_dir
from src.content_optimizer.models import LayoutPreset
from src.content_optimizer.session import Session


async def run(args: argparse.Namespace) -> int:
    config = load_config()
    session = Session(
        GenerationClient(),
        language=config["language"],
        style_strength=config["style_strength"],
        output_dir=Path(args.output) if args.output else resolve_output_dir(config),
    )

    print("=" * 50)
    print("YOUTUBE CONTENT OPTIMIZER")
    print("=" * 50)

    print(f"Topic: {args.topic}")
    print("  Generating titles...")
    if not await session.generate_titles(args.topic, args.language):
        print(f"ERROR: {session.error}")
        return 1
    for i, title in enumerate(session.titles):
        print(f"  [{i:2d}] {title}")

    if not session.select_title(args.pick):
        print(f"ERROR: {session.error}")
        return 1
    print(f"\nTitle: {session.selected_title}")

    steps = [
        lambda: session.set_num_subjects(2 if args.subject2 else 1),
        lambda: session.set_layout(args.layout),
        lambda: session.set_style_strength(args.style_strength or config["style_strength"]),
        lambda: session.upload_subject(1, Path(args.subject)),
    ]
    if args.subject2:
        steps.append(lambda: session.upload_subject(2, Path(args.subject2)))
    if args.background:
        steps.append(lambda: session.add_backgrounds(args.background))
    if args.reference:
        steps.append(lambda: session.add_references(args.reference))
    for step in steps:
        if not step():
            print(f"ERROR: {session.error}")
            return 1

    print("  Crafting your new thumbnail...")
    if not await session.generate_thumbnail():
        print(f"ERROR: {session.error}")
        return 1

    for instruction in args.edit or []:
        print(f"  Applying edit: {instruction}")
        if not await session.apply_edit(instruction):
            print(f"  WARNING: {session.error}")

    await session.wait_for_suggestions()
    if session.suggestions:
        print("\nImprovement ideas:")
        for suggestion in session.suggestions:
            print(f"  - {suggestion}")

    dest = session.download()
    if dest is None:
        print(f"ERROR: {session.error}")
        return 1
    print(f"\nThumbnail saved: {dest}")
    print("=" * 50)
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Generate YouTube titles and a thumbnail with Gemini"
    )
    parser.add_argument("--topic", "-t", required=True, help="Video topic")
    parser.add_argument("--language", "-l", choices=["en", "ar"], default=None,
                        help="Title/thumbnail language (default: from config)")
    parser.add_argument("--pick", "-p", type=int, default=0,
                        help="Index of the generated title to use (default: 0)")
    parser.add_argument("--subject", "-s", required=True, help="Photo of subject 1 (max 4MB)")
    parser.add_argument("--subject2", default=None, help="Photo of subject 2 (enables 2-face mode)")
    parser.add_argument("--background", "-b", action="append", default=[],
                        help="Background/context image (repeatable, max 5)")
    parser.add_argument("--reference", "-r", action="append", default=[],
                        help="Style reference thumbnail (repeatable, max 3)")
    parser.add_argument("--layout", default=LayoutPreset.DEFAULT.value,
                        choices=[p.value for p in LayoutPreset], help="Layout preset")
    parser.add_argument("--style-strength", type=int, default=None,
                        help="Style influence 10-100 (default: from config)")
    parser.add_argument("--edit", "-e", action="append", default=[],
                        help="Edit instruction applied after generation (repeatable)")
    parser.add_argument("--output", "-o", default=None,
                        help="Output directory (default: data/output)")

    args = parser.parse_args()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
