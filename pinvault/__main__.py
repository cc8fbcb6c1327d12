from pinvault.cli.app import main_menu
from pinvault.db import initialize_db
from pinvault.logging import configure_logging, reconfigure
from pinvault.settings import settings


def main() -> None:
    configure_logging()
    if settings.store_backend == "sqlalchemy":
        initialize_db()
        reconfigure()
    main_menu()


if __name__ == "__main__":
    main()
