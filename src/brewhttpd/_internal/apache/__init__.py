"""Apache configuration for the Homebrew httpd formula."""
