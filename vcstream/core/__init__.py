"""Core building blocks shared across vcstream."""
