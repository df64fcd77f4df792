"""Activity logging package."""

from fundlove.activity.logger import ActivityLogger

__all__ = ["ActivityLogger"]
