"""ASO Observatory HTTP API."""
