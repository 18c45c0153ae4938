from climate_points.cli import app

app()
