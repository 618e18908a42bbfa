from flask_sqlalchemy import SQLAlchemy
from flask_jwt_extended import JWTManager
from flask_mail import Mail

db = SQLAlchemy()
jwt = JWTManager()
mail = Mail()


def init_extensions(app):
    db.init_app(app)
    jwt.init_app(app)
    mail.init_app(app)
