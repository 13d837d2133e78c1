"""
Money Categorizer

Assigns categories and transfer flags to personal financial transactions,
either automatically through an LLM or interactively in the terminal.
"""

__version__ = "1.0.0"
