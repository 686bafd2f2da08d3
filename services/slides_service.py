"""
Google Slides Service

Rebuilds a presentation from generated topics. For each topic:
1. Title slide - formatted title text box plus the topic image (if any)
2. Summary slide - summary text box with bold and bullet formatting
3. Chart slide - linked Sheets chart, only when the topic has a dataset
"""

import sys
import uuid
from typing import Any, Dict, List

from formatting import to_slides_requests
from services.sheets_service import (
    build_embed_requests,
    cleanup_spreadsheet_for_charts,
    create_sheets_chart,
)

TITLE_BOX = {"width": 600, "height": 60, "x": 50, "y": 50}
BODY_BOX = {"width": 600, "height": 300, "x": 50, "y": 130}
IMAGE_BOX = {"width": 400, "height": 300, "x": 50, "y": 130}

CHART_X_EMU = 100000.0
CHART_Y_EMU = 160000.0
CHART_WIDTH_EMU = 4000000.0
CHART_HEIGHT_EMU = 3000000.0


def _element_properties(page_id: str, box: Dict[str, float]) -> Dict[str, Any]:
    return {
        "pageObjectId": page_id,
        "size": {
            "width": {"magnitude": box["width"], "unit": "PT"},
            "height": {"magnitude": box["height"], "unit": "PT"},
        },
        "transform": {
            "scaleX": 1,
            "scaleY": 1,
            "translateX": box["x"],
            "translateY": box["y"],
            "unit": "PT",
        },
    }


def _create_slide(slide_id: str) -> Dict[str, Any]:
    return {
        "createSlide": {
            "objectId": slide_id,
            "slideLayoutReference": {"predefinedLayout": "BLANK"},
        }
    }


def _text_box(object_id: str, page_id: str, box: Dict[str, float], markup: str) -> List[Dict[str, Any]]:
    """Create a text box and fill it with formatted markup."""
    requests = [{
        "createShape": {
            "objectId": object_id,
            "shapeType": "TEXT_BOX",
            "elementProperties": _element_properties(page_id, box),
        }
    }]
    requests.extend(to_slides_requests(markup, object_id))
    return requests


def _delete_existing_slides(slides_service, presentation_id: str) -> None:
    presentation = slides_service.presentations().get(presentationId=presentation_id).execute()

    delete_requests = [
        {"deleteObject": {"objectId": slide["objectId"]}}
        for slide in presentation.get("slides", [])
        if slide and slide.get("objectId")
    ]
    if not delete_requests:
        return

    try:
        slides_service.presentations().batchUpdate(
            presentationId=presentation_id,
            body={"requests": delete_requests},
        ).execute()
    except Exception as e:
        raise RuntimeError(f"delete existing slides: {e}") from e

    print(f"🧹 Deleted {len(delete_requests)} existing slide(s)", file=sys.stderr)


def build_topic_requests(
    sheets_service,
    spreadsheet_id: str,
    index: int,
    topic: Dict[str, Any],
) -> List[Dict[str, Any]]:
    """
    Build the Slides requests for one topic.

    Creates the topic's chart in the spreadsheet first when it carries a dataset.

    Args:
        sheets_service: Authenticated Google Sheets API service client
        spreadsheet_id: Spreadsheet that holds chart data
        index: Zero-based topic position, used in object and sheet names
        topic: Dict with "topic", "summary" and optional "image_url" / "dataset"
    """
    suffix = uuid.uuid4().hex[:8]
    requests: List[Dict[str, Any]] = []

    # 1) Title + image slide
    title_slide_id = f"auto_slide_{index}_{suffix}"
    requests.append(_create_slide(title_slide_id))
    requests.extend(_text_box(f"auto_title_{index}_{suffix}", title_slide_id, TITLE_BOX, topic.get("topic", "")))

    image_url = topic.get("image_url")
    if image_url:
        requests.append({
            "createImage": {
                "objectId": f"auto_image_{index}_{suffix}",
                "url": image_url,
                "elementProperties": _element_properties(title_slide_id, IMAGE_BOX),
            }
        })

    # 2) Summary slide
    summary_slide_id = f"auto_summary_{index}_{suffix}"
    requests.append(_create_slide(summary_slide_id))
    requests.extend(
        _text_box(f"auto_summary_body_{index}_{suffix}", summary_slide_id, BODY_BOX, topic.get("summary", ""))
    )

    # 3) Chart slide
    dataset = topic.get("dataset")
    if dataset and dataset.get("points"):
        chart_slide_id = f"auto_chart_slide_{index}_{suffix}"
        requests.append(_create_slide(chart_slide_id))
        try:
            chart_id = create_sheets_chart(sheets_service, spreadsheet_id, f"Data_{index + 1}", dataset)
        except Exception as e:
            raise RuntimeError(f"create sheets chart for topic {topic.get('topic')!r}: {e}") from e
        requests.extend(build_embed_requests(
            spreadsheet_id,
            chart_id,
            chart_slide_id,
            f"auto_chart_{index}_{suffix}",
            CHART_X_EMU,
            CHART_Y_EMU,
            CHART_WIDTH_EMU,
            CHART_HEIGHT_EMU,
        ))

    return requests


def write_topics_with_charts(
    slides_service,
    sheets_service,
    spreadsheet_id: str,
    presentation_id: str,
    topics: List[Dict[str, Any]],
) -> None:
    """
    Replace the presentation's slides with generated topic slides.

    Args:
        slides_service: Authenticated Google Slides API service client
        sheets_service: Authenticated Google Sheets API service client
        spreadsheet_id: Spreadsheet used for chart data
        presentation_id: Presentation to rewrite
        topics: Topic dicts (see build_topic_requests)

    Raises:
        ValueError: If a service client is missing
        RuntimeError: If a Slides or Sheets step fails
    """
    if slides_service is None:
        raise ValueError("slides service is None")
    if sheets_service is None:
        raise ValueError("sheets service is None")

    _delete_existing_slides(slides_service, presentation_id)
    cleanup_spreadsheet_for_charts(sheets_service, spreadsheet_id)

    requests: List[Dict[str, Any]] = []
    for index, topic in enumerate(topics):
        requests.extend(build_topic_requests(sheets_service, spreadsheet_id, index, topic))
    if not requests:
        return

    try:
        slides_service.presentations().batchUpdate(
            presentationId=presentation_id,
            body={"requests": requests},
        ).execute()
    except Exception as e:
        raise RuntimeError(f"batch update: {e}") from e

    print(f"✅ Wrote {len(topics)} topic(s) to presentation {presentation_id}", file=sys.stderr)
