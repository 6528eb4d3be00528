"""brewhttpd internal implementation; not a public API."""
