"""newsdesk - editorial workflow core for a news CMS."""

__version__ = "0.1.0"
