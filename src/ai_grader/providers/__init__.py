"""Model backends for structured-output review requests."""
