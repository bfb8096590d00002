"""Core components: descriptor handling, resolution, and content access."""
