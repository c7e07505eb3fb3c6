"""Injectable collaborators with fake and production implementations."""
