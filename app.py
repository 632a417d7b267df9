import os
import logging
from dotenv import load_dotenv
load_dotenv()
from flask import Flask, jsonify
from flask_cors import CORS
from flask_migrate import Migrate
from config import config_dict, ProdConfig
from models import db
from classes.errors import LearningError
from routes.employees import employee_bp
from routes.company_admin import admin_bp

migrate = Migrate()


def create_app(config_name=None):
    env = (config_name or os.environ.get("FLASK_ENV", "production")).lower()

    app = Flask(__name__)
    app.config.from_object(config_dict.get(env, ProdConfig))

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.logger.setLevel(app.config["LOG_LEVEL"])

    CORS(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"], "supports_credentials": True}})

    db.init_app(app)
    migrate.init_app(app, db)

    @app.route('/')
    def home():
        return "Security awareness learning engine"

    @app.errorhandler(LearningError)
    def handle_learning_error(error):
        return jsonify(error.to_dict()), error.status_code

    app.register_blueprint(employee_bp, url_prefix='/api/employee')
    app.register_blueprint(admin_bp, url_prefix='/api/admin')

    app.logger.info("Environment: %s", env)
    return app


if __name__ == '__main__':
    app = create_app()
    app.run(debug=app.config['DEBUG'])
