"""Bridge proxy: a rate-limited reverse proxy in front of a backend data API."""
