"""Instagram post/reel resolution and relevance scoring."""

__version__ = "0.1.0"
