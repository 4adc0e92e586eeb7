from flask import Flask
from config import Config
from routes.images import bp as images_bp
from utils.logging import set_level
import os

def create_app(overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    app.config.update(overrides or {})
    app.static_folder = app.config["STATIC_DIR"]
    set_level(app.config["LOG_LEVEL"])

    # ensure dirs exist
    os.makedirs(app.config["UPLOAD_DIR"], exist_ok=True)
    os.makedirs(app.config["RESULT_DIR"], exist_ok=True)

    # blueprints
    app.register_blueprint(images_bp)

    return app

if __name__ == "__main__":
    app = create_app()
    app.run(debug=True)
