"""
WordRef: citation markers, first-appearance numbering and a synchronized
bibliography for editable documents.
"""

__version__ = "0.1.0"
