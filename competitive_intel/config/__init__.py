"""Configuration: environment settings, logging, pipeline config and rule tables."""
