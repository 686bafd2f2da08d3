#!/usr/bin/env python3
"""
topic_deck.py
-------------
One-call pipeline that proposes presentation topics and optionally writes
them into a Google Slides deck:
1. input_guard - sanitize inputs and run the safety pre-classification
2. generate_topics - ask the model for topics, summaries and datasets
3. slides_service - rebuild the deck with title, summary and chart slides

The topics JSON is printed to stdout; progress goes to stderr.

Usage:
  python topic_deck.py --subject "History of Formula 1" --audience "students"

  python topic_deck.py --subject "Population of NYC" --presentation-id <ID> --sheet-id <ID>
"""
from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from processes.topic_gen import classify_inputs, generate_topics, validate_inputs
from processes.topic_gen.generate_topics import DEFAULT_MODEL, MAX_TOPICS
from services import get_google_services, search_best_image, validate_image_url, write_topics_with_charts

load_dotenv()

FALLBACK_IMAGE_URL = "https://t3.ftcdn.net/jpg/05/79/68/24/360_F_579682465_CBq4AWAFmFT1otwioF5X327rCjkVICyH.jpg"
IMAGE_RESULTS = 5


def _log(message: str) -> None:
    print(message, file=sys.stderr)


def clamp_max_topics(value: int) -> int:
    if value <= 0 or value > MAX_TOPICS:
        return MAX_TOPICS
    return value


def find_topic_image(topic_title: str, args: argparse.Namespace, cse_key: str, cse_cx: str) -> str:
    """Best-effort image lookup; any failure falls back to the default image."""
    image_url = ""
    try:
        image_url = search_best_image(
            cse_key,
            cse_cx,
            topic_title,
            img_size=args.img_size,
            img_type=args.img_type,
            img_color_type=args.img_color_type,
            img_dominant_color=args.img_dominant,
            rights=args.img_rights,
            safe=args.img_safe,
            num=IMAGE_RESULTS,
        )
    except Exception as e:
        _log(f"⚠️ Image search failed for {topic_title!r}: {e}")
    return validate_image_url(image_url, args.default_image_url)


def build_deck_topics(topics: List[Dict[str, Any]], args: argparse.Namespace) -> List[Dict[str, Any]]:
    """Attach an image URL to each topic when image search is configured."""
    cse_key = args.cse_key or os.getenv("CSE_API_KEY", "")
    cse_cx = args.cse_cx or os.getenv("CSE_CX", "")

    deck_topics = []
    for topic in topics:
        deck_topic = dict(topic)
        if cse_key and cse_cx:
            _log(f"🔍 Searching image for: {topic['topic']}")
            deck_topic["image_url"] = find_topic_image(topic["topic"], args, cse_key, cse_cx)
        deck_topics.append(deck_topic)
    return deck_topics


def write_deck(topics: List[Dict[str, Any]], args: argparse.Namespace) -> None:
    """Write topics into the presentation; missing credentials skip this step."""
    try:
        slides_service, sheets_service = get_google_services()
    except FileNotFoundError as e:
        _log(f"⚠️ {e}; skipping Slides editing")
        return

    if not args.sheet_id:
        _log("❌ --sheet-id is required when --presentation-id is set")
        return

    deck_topics = build_deck_topics(topics, args)
    try:
        write_topics_with_charts(slides_service, sheets_service, args.sheet_id, args.presentation_id, deck_topics)
    except Exception as e:
        _log(f"❌ Writing topics to presentation failed: {e}")


def run_topic_pipeline(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Validate inputs, generate topics, and optionally write the deck.

    Returns:
        dict: {"topics": [...], "meta": {...}} as printed to stdout

    Raises:
        SystemExit: On invalid inputs, flagged inputs, or unusable model output
    """
    try:
        subject, audience, tone = validate_inputs(args.subject, args.audience, args.tone)
    except ValueError as e:
        raise SystemExit(f"❌ {e}")

    try:
        if classify_inputs(subject, audience, tone, args.model):
            raise SystemExit("❌ inputs flagged as gibberish or jailbreak attempt by model; aborting")
    except SystemExit:
        raise
    except Exception as e:
        _log(f"⚠️ warning: classifier error: {e}")

    _log(f"✨ Generating up to {args.max} topics with {args.model}...")
    try:
        result = generate_topics(subject, audience, tone, max_topics=args.max, model=args.model)
    except Exception as e:
        raise SystemExit(f"❌ Topic generation failed: {e}")

    print(json.dumps(result, indent=2, ensure_ascii=False))

    if args.presentation_id:
        write_deck(result["topics"], args)

    return result


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description="Propose presentation topics and optionally write them into Google Slides",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Print topics as JSON
  python topic_deck.py --subject "Renewable energy adoption"

  # Tailor audience and tone
  python topic_deck.py --subject "Cloud security" --audience "CTOs" --tone "concise"

  # Rebuild a deck (charts go to the given spreadsheet)
  python topic_deck.py --subject "Steam user growth" --presentation-id PRES_ID --sheet-id SHEET_ID
        """
    )

    # Topic inputs
    ap.add_argument("--subject", type=str, required=True, help="Presentation subject (required)")
    ap.add_argument("--audience", type=str, default="", help="Intended audience (optional)")
    ap.add_argument("--tone", type=str, default="", help="Tone/style (optional)")
    ap.add_argument("--max", type=int, default=MAX_TOPICS, help=f"Max topics (<={MAX_TOPICS})")
    ap.add_argument("--model", type=str, default=DEFAULT_MODEL, help=f"Model to use (default: {DEFAULT_MODEL})")

    # Deck targets
    ap.add_argument("--presentation-id", type=str, default="", help="Google Slides presentation ID to edit (optional)")
    ap.add_argument(
        "--sheet-id",
        type=str,
        default="",
        help="Google Sheets spreadsheet ID to use for charts (required when --presentation-id is set)",
    )

    # Image search
    ap.add_argument("--cse-key", type=str, default="", help="Google Custom Search API key (default: env CSE_API_KEY)")
    ap.add_argument("--cse-cx", type=str, default="", help="Google Custom Search Engine ID (default: env CSE_CX)")
    ap.add_argument("--img-size", type=str, default="large", help="icon|small|medium|large|xlarge|xxlarge|huge")
    ap.add_argument("--img-type", type=str, default="photo", help="clipart|face|lineart|news|photo")
    ap.add_argument("--img-color-type", type=str, default="color", help="mono|gray|color")
    ap.add_argument("--img-dominant", type=str, default="", help="Dominant color, e.g. red|blue|black")
    ap.add_argument("--img-rights", type=str, default="", help="License filter, e.g. cc_publicdomain|cc_attribute")
    ap.add_argument("--img-safe", type=str, default="active", help="off|medium|active")
    ap.add_argument(
        "--default-image-url",
        type=str,
        default=os.getenv("DEFAULT_IMAGE_URL") or FALLBACK_IMAGE_URL,
        help="Fallback image URL if the selected image is invalid",
    )
    return ap


def main(argv: Optional[List[str]] = None):
    args = build_parser().parse_args(argv)

    if not args.subject:
        raise SystemExit("❌ --subject is required")
    args.max = clamp_max_topics(args.max)

    run_topic_pipeline(args)


if __name__ == "__main__":
    main()
