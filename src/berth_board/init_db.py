"""Create database tables and the attachment storage root."""

from berth_board.core.settings import settings
from berth_board.db.session import create_tables


def init_db() -> None:
    """Initialize the database by creating all tables."""
    create_tables()
    settings.storage_root.mkdir(parents=True, exist_ok=True)


if __name__ == "__main__":
    init_db()
    print("Database initialized.")
