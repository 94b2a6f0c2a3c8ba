"""Create the rehearsal scheduler schema in the database named by
``DATABASE_URL``."""
from rehearsal_scheduler.db import DATABASE_URL, init_db


def main():
    init_db()
    print(f"Schema ready on {DATABASE_URL.split('@')[-1]}")


if __name__ == "__main__":
    main()
