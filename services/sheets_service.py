"""
Google Sheets Service

Backs the deck's charts with a spreadsheet:
- Cleaning up tabs and chart sheets left by a previous run
- Writing a dataset into a grid sheet and charting it
- Building the Slides request that embeds a linked chart
"""

import re
import sys
from typing import Any, Dict, List, Optional

GENERATED_SHEET_RE = re.compile(r"^Data_\d+$")
FALLBACK_SHEET_TITLE = "Sheet1"

DEFAULT_EMBED_X = 100000.0
DEFAULT_EMBED_Y = 100000.0
DEFAULT_EMBED_SIZE = 4000000.0


def _list_sheets(sheets_service, spreadsheet_id: str) -> List[Dict[str, Any]]:
    spreadsheet = (
        sheets_service.spreadsheets()
        .get(
            spreadsheetId=spreadsheet_id,
            fields="sheets(properties(sheetId,title,sheetType))",
        )
        .execute()
    )
    return [s.get("properties", {}) for s in spreadsheet.get("sheets", []) if s]


def cleanup_spreadsheet_for_charts(sheets_service, spreadsheet_id: str) -> None:
    """
    Remove generated Data_<n> tabs and every chart sheet from the spreadsheet.

    A spreadsheet must keep at least one sheet, so a blank one is added
    first when the cleanup would otherwise delete them all.

    Args:
        sheets_service: Authenticated Google Sheets API service client
        spreadsheet_id: Target spreadsheet ID
    """
    sheets = _list_sheets(sheets_service, spreadsheet_id)

    doomed = [
        props for props in sheets
        if props.get("sheetType", "").upper() == "CHART"
        or GENERATED_SHEET_RE.match(props.get("title", ""))
    ]
    if not doomed:
        return

    requests = []
    if len(doomed) == len(sheets):
        requests.append({"addSheet": {"properties": {"title": FALLBACK_SHEET_TITLE}}})
    requests.extend({"deleteSheet": {"sheetId": props["sheetId"]}} for props in doomed)

    try:
        sheets_service.spreadsheets().batchUpdate(
            spreadsheetId=spreadsheet_id,
            body={"requests": requests},
        ).execute()
        print(f"🧹 Removed {len(doomed)} generated sheet(s) from spreadsheet", file=sys.stderr)
    except Exception as e:
        print(f"❌ Could not clean up spreadsheet: {e}", file=sys.stderr)
        raise


def ensure_grid_sheet(sheets_service, spreadsheet_id: str, sheet_title: str) -> int:
    """Return the sheetId of `sheet_title`, creating the tab if needed."""
    for props in _list_sheets(sheets_service, spreadsheet_id):
        if props.get("title") == sheet_title:
            return props["sheetId"]

    resp = sheets_service.spreadsheets().batchUpdate(
        spreadsheetId=spreadsheet_id,
        body={"requests": [{"addSheet": {"properties": {"title": sheet_title}}}]},
    ).execute()

    try:
        return resp["replies"][0]["addSheet"]["properties"]["sheetId"]
    except (KeyError, IndexError, TypeError):
        raise ValueError(f"missing add sheet reply for {sheet_title!r}")


def make_cells(labels: List[str], header: str, values: List[float]) -> List[List[Any]]:
    rows: List[List[Any]] = [["Label", header]]
    rows.extend([label, value] for label, value in zip(labels, values))
    return rows


def chart_type_for(dataset_type: Optional[str]) -> str:
    return "LINE" if dataset_type == "timeseries" else "COLUMN"


def create_sheets_chart(
    sheets_service,
    spreadsheet_id: str,
    sheet_title: str,
    dataset: Dict[str, Any],
) -> int:
    """
    Write a dataset into a sheet and add a chart for it on a new chart sheet.

    Args:
        sheets_service: Authenticated Google Sheets API service client
        spreadsheet_id: Target spreadsheet ID
        sheet_title: Grid sheet that receives the data (created if missing)
        dataset: Dict with optional title/unit/type and a non-empty
            "points" list of {"label", "value"}

    Returns:
        int: The new chart's ID

    Raises:
        ValueError: On missing arguments, empty data, or a malformed API reply
    """
    if not (spreadsheet_id or "").strip():
        raise ValueError("spreadsheet_id is required")
    if not (sheet_title or "").strip():
        sheet_title = "Data"
    points = dataset.get("points") or []
    if not points:
        raise ValueError("no points to chart")

    sheet_id = ensure_grid_sheet(sheets_service, spreadsheet_id, sheet_title)

    values_api = sheets_service.spreadsheets().values()
    values_api.clear(
        spreadsheetId=spreadsheet_id,
        range=f"{sheet_title}!A:Z",
        body={},
    ).execute()

    unit = dataset.get("unit")
    header = f"Value ({unit})" if unit else "Value"
    rows = make_cells([p["label"] for p in points], header, [p["value"] for p in points])
    values_api.update(
        spreadsheetId=spreadsheet_id,
        range=f"{sheet_title}!A1:B",
        valueInputOption="RAW",
        body={"values": rows},
    ).execute()

    row_count = len(points) + 1  # including header
    domain_range = {
        "sheetId": sheet_id,
        "startRowIndex": 1,
        "endRowIndex": row_count,
        "startColumnIndex": 0,
        "endColumnIndex": 1,
    }
    series_range = dict(domain_range, startColumnIndex=1, endColumnIndex=2)

    add_chart = {
        "addChart": {
            "chart": {
                "spec": {
                    "title": dataset.get("title") or "Chart",
                    "basicChart": {
                        "chartType": chart_type_for(dataset.get("type")),
                        "legendPosition": "BOTTOM_LEGEND",
                        "domains": [{"domain": {"sourceRange": {"sources": [domain_range]}}}],
                        "series": [{
                            "series": {"sourceRange": {"sources": [series_range]}},
                            "targetAxis": "LEFT_AXIS",
                        }],
                    },
                },
                "position": {"newSheet": True},
            }
        }
    }

    resp = sheets_service.spreadsheets().batchUpdate(
        spreadsheetId=spreadsheet_id,
        body={"requests": [add_chart]},
    ).execute()

    try:
        chart_id = resp["replies"][0]["addChart"]["chart"]["chartId"]
    except (KeyError, IndexError, TypeError):
        raise ValueError("missing add chart reply")

    print(f"📊 Chart {chart_id} created from '{sheet_title}' ({len(points)} points)", file=sys.stderr)
    return chart_id


def build_embed_requests(
    spreadsheet_id: str,
    chart_id: int,
    page_object_id: str,
    object_id: str,
    x_emu: float,
    y_emu: float,
    width_emu: float,
    height_emu: float,
) -> List[Dict[str, Any]]:
    """
    Build the Slides request that embeds a linked Sheets chart on a slide.

    Position and size are in EMU; invalid values fall back to defaults.
    """
    if not object_id:
        object_id = "MyEmbeddedChart"
    if width_emu <= 0:
        width_emu = DEFAULT_EMBED_SIZE
    if height_emu <= 0:
        height_emu = DEFAULT_EMBED_SIZE
    if x_emu < 0:
        x_emu = DEFAULT_EMBED_X
    if y_emu < 0:
        y_emu = DEFAULT_EMBED_Y

    return [{
        "createSheetsChart": {
            "objectId": object_id,
            "spreadsheetId": spreadsheet_id,
            "chartId": chart_id,
            "linkingMode": "LINKED",
            "elementProperties": {
                "pageObjectId": page_object_id,
                "size": {
                    "height": {"magnitude": height_emu, "unit": "EMU"},
                    "width": {"magnitude": width_emu, "unit": "EMU"},
                },
                "transform": {
                    "scaleX": 1.0,
                    "scaleY": 1.0,
                    "translateX": x_emu,
                    "translateY": y_emu,
                    "unit": "EMU",
                },
            },
        }
    }]
