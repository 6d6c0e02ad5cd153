"""
Reset the progress database.

DANGEROUS: This deletes all stored progress, including tool state and undo history!
Only use when you want to start fresh for testing.

Usage:
    python -m scripts.maintenance.reset_progress_db
"""

from lakeplan.progress import get_database_url, get_engine, reset_db


def main():
    db_url = get_database_url()

    print("=" * 60)
    print("WARNING: Reset Progress Database")
    print("=" * 60)
    print()
    print(f"Database: {db_url}")
    print()
    print("This will DELETE all stored progress:")
    print("  - Event records (tasks, shop quantities)")
    print("  - Fishing tool state (lakes, broken lines, history)")
    print()

    response = input("Are you sure you want to reset? (type 'yes' to confirm): ")

    if response.lower() == "yes":
        print("\nResetting database...")
        reset_db(get_engine(db_url))
        print("✓ Database reset complete!")
        print("\nThe database now has an empty table ready for new progress.")
    else:
        print("\nCancelled. No changes made.")


if __name__ == "__main__":
    main()
