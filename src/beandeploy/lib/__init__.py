"""Shared helpers for beandeploy: errors, logging and polling."""
