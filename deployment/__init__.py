"""HTTP service for hybrid retrieval."""
