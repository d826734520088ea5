"""Allow running as `python -m pr_cleaner_ai`."""

from .main import run


run()
