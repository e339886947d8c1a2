from tomdeploy.main import app

app()
