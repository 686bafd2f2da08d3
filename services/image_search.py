"""
Image Search Service

Finds a picture for each topic via the Google Custom Search JSON API and
checks that a chosen URL is something Slides can actually fetch.
"""

import re
from typing import Dict, List, Optional

import requests

CSE_ENDPOINT = "https://customsearch.googleapis.com/customsearch/v1"
SEARCH_TIMEOUT = 10
HEAD_TIMEOUT = 5
DEFAULT_NUM = 5

TOKEN_SPLIT_RE = re.compile(r"[,.\-_()\[\]'\":;!?&]")


def tokenize(s: str) -> List[str]:
    """Lower-case, split on punctuation/whitespace, keep terms of 2+ chars."""
    return [t for t in TOKEN_SPLIT_RE.sub(" ", s.lower()).split() if len(t) >= 2]


def score_item(title: str, snippet: str, link: str, terms: List[str]) -> int:
    text = " ".join([title, snippet, link]).lower()
    return sum(1 for t in terms if t in text)


def search_best_image(
    api_key: str,
    cx: str,
    query: str,
    img_size: str = "",
    img_type: str = "",
    img_color_type: str = "",
    img_dominant_color: str = "",
    rights: str = "",
    safe: str = "",
    num: int = DEFAULT_NUM,
) -> str:
    """
    Query Google Custom Search for images and return the best matching link.

    Items are scored by how many query terms appear in their title, snippet
    and link, with a point each for an https link and an image/* mime type.

    Args:
        api_key: Custom Search API key
        cx: Custom Search Engine ID
        query: Search text (usually the topic title)
        img_size, img_type, img_color_type, img_dominant_color, rights, safe:
            Optional CSE image filters, skipped when empty
        num: Results to fetch, 1-10 (default 5)

    Returns:
        str: URL of the best image

    Raises:
        ValueError: On missing key/cx/query or when nothing is found
        requests.RequestException: On transport or HTTP errors
    """
    if not (api_key or "").strip() or not (cx or "").strip():
        raise ValueError("missing CSE key or cx")
    if not (query or "").strip():
        raise ValueError("empty query")
    if num <= 0 or num > 10:
        num = DEFAULT_NUM

    params = {
        "key": api_key,
        "cx": cx,
        "q": query,
        "num": str(num),
        "searchType": "image",
    }
    optional: Dict[str, str] = {
        "safe": safe,
        "imgSize": img_size,
        "imgType": img_type,
        "imgColorType": img_color_type,
        "imgDominantColor": img_dominant_color,
        "rights": rights,
    }
    params.update({k: v for k, v in optional.items() if v})

    resp = requests.get(CSE_ENDPOINT, params=params, timeout=SEARCH_TIMEOUT)
    resp.raise_for_status()

    items = resp.json().get("items") or []
    if not items:
        raise ValueError("no results")

    terms = tokenize(query)
    best_link: Optional[str] = None
    best_score = -1
    for item in items:
        link = item.get("link", "")
        score = score_item(item.get("title", ""), item.get("snippet", ""), link, terms)
        if link.lower().startswith("https://"):
            score += 1
        if item.get("mime", "").startswith("image/"):
            score += 1
        if score > best_score:
            best_score = score
            best_link = link

    return best_link


def validate_image_url(image_url: str, default_url: str) -> str:
    """Return image_url if it is HTTPS and answers HEAD with an image, else default_url."""
    if not (image_url or "").lower().startswith("https://"):
        return default_url

    try:
        resp = requests.head(image_url, timeout=HEAD_TIMEOUT, allow_redirects=True)
    except requests.RequestException:
        return default_url

    if resp.status_code != 200:
        return default_url

    content_type = resp.headers.get("Content-Type", "").lower()
    if content_type and not content_type.startswith("image/"):
        return default_url

    return image_url
