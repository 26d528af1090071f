"""Development entrypoint: ``python app.py`` or ``flask --app app run``."""
from src.worktime.worktime.main import create_app

app = create_app()

if __name__ == "__main__":
    # The reloader would start a second process with its own rotation scheduler.
    app.run(debug=app.config["DEBUG"], use_reloader=False)
