"""Photo gallery back-end over Google Drive."""

__version__ = "0.1.0"
