"""Configuration, defaults and domain records."""
