"""brewhttpd display utilities."""
