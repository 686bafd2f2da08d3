"""
Services package for model and Google API integrations.

Provides reusable services for text generation, Google Slides, Google Sheets,
and image search.
"""

from .google_auth import get_google_services
from .llm_service import generate_text, is_rate_limit_error
from .image_search import search_best_image, validate_image_url
from .sheets_service import cleanup_spreadsheet_for_charts, create_sheets_chart, build_embed_requests
from .slides_service import write_topics_with_charts

__all__ = [
    'get_google_services',
    'generate_text',
    'is_rate_limit_error',
    'search_best_image',
    'validate_image_url',
    'cleanup_spreadsheet_for_charts',
    'create_sheets_chart',
    'build_embed_requests',
    'write_topics_with_charts'
]
