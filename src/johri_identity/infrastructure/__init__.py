"""Infrastructure adapters: persistence and notification delivery."""
