"""QuantGenAILabs authentication service."""
