"""Click commands registered on the beandeploy CLI."""
