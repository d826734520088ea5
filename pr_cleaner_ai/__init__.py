"""
pr-cleaner-ai: fetch GitHub PR comments and prepare them for an AI assistant.
"""

__version__ = "0.1.0"
