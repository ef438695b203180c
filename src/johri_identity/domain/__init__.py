"""Domain layer for account identity and security."""
