"""Pydantic models for beandeploy configuration and platform entities."""
