"""Report sources and tab stores."""
