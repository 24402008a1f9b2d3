"""Configuration, logging, metrics, errors and auth primitives."""
