"""Command-line interface for beandeploy."""
