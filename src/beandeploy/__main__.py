from beandeploy.cli.main import main

main()
