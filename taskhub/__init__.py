"""TaskHub: team task tracking, direct messages and presence over a JSON API."""

__version__ = "1.0.0"
