"""
Completion gateway: conversational chat completions with model fallback.
"""

__version__ = "0.1.0"
