"""Request-pipeline services used by the proxy routes and middleware."""
