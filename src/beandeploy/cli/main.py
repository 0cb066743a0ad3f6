"""Entry point for the beandeploy command-line interface."""

import click

from beandeploy import __version__
from beandeploy.cli.commands.deploy import (
    clean,
    deploy,
    info,
    terminate,
    upload,
    version,
)


@click.group(name="beandeploy")
@click.version_option(__version__, prog_name="beandeploy")
def main() -> None:
    """Deploy application artifacts to managed platform environments.

    \b
    EXAMPLES:

        Deploy a build to an environment (creates it if needed):
            beandeploy deploy hello-dev --artifact target/hello.war

        Show environments of the application:
            beandeploy info

        Terminate an environment:
            beandeploy terminate hello-dev
    """
    pass


main.add_command(deploy)
main.add_command(upload)
main.add_command(version)
main.add_command(clean)
main.add_command(terminate)
main.add_command(info)


if __name__ == "__main__":
    main()
