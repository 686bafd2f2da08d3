"""
Formatting package.

Turns the model's bold/bullet markup into Google Slides text edit operations.
"""

from .text_processor import (
    ApplyBoldStyle,
    ApplyBulletPreset,
    BoldRange,
    BulletRange,
    CompiledText,
    EditOperation,
    InsertText,
    TextSegment,
    clean_text,
    compile_segments,
    parse_markup,
    to_edit_operations,
    to_slides_requests,
)

__all__ = [
    'ApplyBoldStyle',
    'ApplyBulletPreset',
    'BoldRange',
    'BulletRange',
    'CompiledText',
    'EditOperation',
    'InsertText',
    'TextSegment',
    'clean_text',
    'compile_segments',
    'parse_markup',
    'to_edit_operations',
    'to_slides_requests',
]
