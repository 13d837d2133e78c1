"""
Interactive terminal categorization
"""

from .session import InteractiveCategorizer, run_interactive_session

__all__ = [
    'InteractiveCategorizer',
    'run_interactive_session',
]
