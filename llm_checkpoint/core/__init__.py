"""Configuration, logging, migrations and signals."""
