# Overview: Flask extension instances for database and migrations.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

# The one storage handle for the process; bound to an app in create_app().
db = SQLAlchemy()
migrate = Migrate()
