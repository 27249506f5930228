from nbpublish.cli import app

app()
