from timedwall.cli.app import app

app()
