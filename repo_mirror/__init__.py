"""
Repo Mirror — Force-push a list of source repositories into a destination organization.
"""

__version__ = "0.1.0"
