"""Account registration and session login; supplies the caller identity to the other modules."""
