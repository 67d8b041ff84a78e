"""Business-administration portal API."""
