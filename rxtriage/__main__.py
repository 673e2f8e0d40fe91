from rxtriage.cli import app

app()
