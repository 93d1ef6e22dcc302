"""Application settings for the code retrieval service."""
