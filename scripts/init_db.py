import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from posapi.database.connection import engine
from posapi.config import settings
from posapi.models import Base


def init_db():
    """Create every table on DATABASE_URL"""
    try:
        Base.metadata.create_all(bind=engine)
        print(f"Database initialized: {len(Base.metadata.tables)} tables on {engine.url.render_as_string(hide_password=True)}")
    except Exception as e:
        print(f"Database initialization failed ({settings.ENVIRONMENT}): {str(e)}")
        raise


if __name__ == "__main__":
    init_db()
