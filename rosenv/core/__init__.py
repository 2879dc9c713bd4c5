"""Core — configuration, models and services behind the CLI."""
