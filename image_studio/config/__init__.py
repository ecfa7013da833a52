"""Configuration: environment settings and YAML pricing tables."""
