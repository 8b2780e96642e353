"""Geo-aware job matching core for a student gig marketplace."""

__version__ = "0.1.0"
