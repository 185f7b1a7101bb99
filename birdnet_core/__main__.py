from birdnet_core.cli import app

app()
