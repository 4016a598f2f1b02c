# Overview: Flask extension instances for database and migrations.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

from .services.dispatch import AuditDispatcher

db = SQLAlchemy()
migrate = Migrate()
audit_dispatcher = AuditDispatcher()
