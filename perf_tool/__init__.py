"""Page load performance measurement: stage timings, repeated runs, robust summaries."""

__version__ = "1.0.0"
