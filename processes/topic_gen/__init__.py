"""
Topic Generation package.

Validates the user's subject, asks the model for presentation topics with
formatted summaries and optional datasets, and returns them as JSON-ready dicts.
"""

from .generate_topics import generate_topics
from .input_guard import classify_inputs, validate_inputs

__all__ = ['generate_topics', 'classify_inputs', 'validate_inputs']
