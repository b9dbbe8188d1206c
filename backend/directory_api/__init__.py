"""Kingston directory API: listings, submission moderation and Google Places import."""

__version__ = "0.1.0"
