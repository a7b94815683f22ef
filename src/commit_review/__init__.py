"""
Commit Review

Filters the latest commit's diff and drives a two-phase review
conversation with a language model.
"""

__version__ = "0.1.0"
