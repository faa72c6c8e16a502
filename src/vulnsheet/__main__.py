from vulnsheet.cli import app

app()
