"""DocTrack: construction document register tracking and certificate progress reporting."""

__version__ = "0.3.0"
