"""gitshelf - personal file hosting catalog backed by a Git repository."""

__version__ = "1.0.0"
