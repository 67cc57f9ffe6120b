"""AI review orchestration."""
