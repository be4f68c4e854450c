"""Core infrastructure: configuration, logging, canonical JSON, graph and store."""
