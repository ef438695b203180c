"""Application layer: use-case orchestration for account security."""
