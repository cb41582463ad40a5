"""Discovery feed client: candidate paging, prefetch, browsing and swipes."""

__version__ = "0.1.0"
