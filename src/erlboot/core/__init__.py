"""Core utilities shared across erlboot."""
