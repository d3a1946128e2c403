from jsdocgen.cli import app

app()
