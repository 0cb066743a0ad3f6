"""Default file names and environment variables for beandeploy."""

# Project configuration file names, in order of preference
PROJECT_CONFIG_FILES = ("beandeploy.yml", "beandeploy.yaml")

# User-level directory and credential file names
USER_CONFIG_DIR = ".beandeploy"
CREDENTIALS_FILES = ("credentials.yml", "credentials.yaml")

# Credential environment variables
ACCESS_KEY_ENV = "BEANDEPLOY_ACCESS_KEY"
SECRET_KEY_ENV = "BEANDEPLOY_SECRET_KEY"
