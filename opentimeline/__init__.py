"""OpenTimeline - resolves timelines of dated entities from tags and sub-timelines."""

__version__ = "0.1.0"
