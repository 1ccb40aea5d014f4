"""Cross-cutting pipeline plumbing (progress broadcasting)."""

from inframind.pipeline.progress_tracker import ProgressTracker

__all__ = ["ProgressTracker"]
