"""Password hashing and request rate limiting."""
