"""Google Sheet row enrichment with AI project-risk predictions."""

__version__ = "0.1.0"
