"""Configuration loading for cryptofolio."""
