from talentdesk.db.session import engine
from talentdesk.db.base import Base


def init_db(bind=None):
    """Create all tables that do not exist yet."""
    import talentdesk.db.models  # noqa: F401  registers models on Base.metadata

    Base.metadata.create_all(bind=bind or engine)


if __name__ == "__main__":
    init_db()
