"""Create all tables for a fresh database (local runs without alembic)."""

from dotenv import load_dotenv

load_dotenv()

from syllabuser.core.config import settings  # noqa: E402
from syllabuser.core.database import Base, engine  # noqa: E402
import syllabuser.models  # noqa: E402,F401

print(f"Creating tables on {engine.url.render_as_string(hide_password=True)}")
Base.metadata.create_all(engine)
print(f"Tables: {', '.join(sorted(Base.metadata.tables))}")
if not settings.is_sqlite:
    print("For PostgreSQL deployments prefer the alembic migration in alembic/versions.")
print("Done!")
