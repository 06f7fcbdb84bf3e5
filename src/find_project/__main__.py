from find_project.main import app

app()
