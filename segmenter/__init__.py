"""Statistical region-merging image segmenter."""

__version__ = "0.1.0"
