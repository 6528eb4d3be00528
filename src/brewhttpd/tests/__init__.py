"""brewhttpd test utilities and data."""
