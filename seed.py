"""
Load sample habits and a test account into the configured database.

    python seed.py            # replace all habits with the samples
    python seed.py --keep     # insert the samples next to existing habits
"""
import argparse
import logging

from database import HABITS_COLLECTION, close_db, get_db
from errors import DuplicateUserError
from habits import HabitStore
from users import UserStore

logger = logging.getLogger("seed")

TEST_USERNAME = "testuser"
TEST_EMAIL = "test@example.com"
TEST_PASSWORD = "password123"

SAMPLE_HABITS = [
    {
        "title": "Morning Meditation",
        "description": "10 minutes of mindfulness meditation every morning before breakfast",
        "category": "Mindfulness",
        "frequency": "Daily",
        "priority": "High",
        "status": "Active",
        "target_date": "2024-12-31",
        "streak": 15,
        "notes": "Using Headspace app for guided sessions",
    },
    {
        "title": "Daily Exercise",
        "description": "30 minutes of cardio or strength training",
        "category": "Fitness",
        "frequency": "Daily",
        "priority": "High",
        "streak": 28,
        "notes": "Alternating between running and gym workouts",
    },
    {
        "title": "Read for 30 Minutes",
        "description": "Read books or articles for personal development",
        "category": "Learning",
        "priority": "Medium",
        "target_date": "2024-06-30",
        "streak": 12,
        "notes": 'Currently reading "Atomic Habits"',
    },
    {
        "title": "Drink 8 Glasses of Water",
        "description": "Stay hydrated throughout the day",
        "category": "Health",
        "priority": "High",
        "streak": 45,
        "notes": "Using water tracking app",
    },
    {
        "title": "Weekly Planning",
        "description": "Review last week and plan priorities for the next one",
        "category": "Productivity",
        "frequency": "Weekly",
        "streak": 6,
    },
    {
        "title": "Call Family",
        "description": "Catch up with parents or siblings",
        "category": "Social",
        "frequency": "Weekly",
        "priority": "Low",
        "streak": 4,
    },
    {
        "title": "Learn a New Recipe",
        "description": "Cook a dish I have never made before",
        "category": "Learning",
        "frequency": "Bi-weekly",
        "priority": "Low",
        "streak": 2,
        "notes": "Expanding culinary skills",
    },
    {
        "title": "Budget Review",
        "description": "Compare spending against the monthly budget",
        "category": "Productivity",
        "frequency": "Monthly",
        "status": "Paused",
    },
    {
        "title": "Digital Detox Evening",
        "description": "No screens after 9pm",
        "category": "Mindfulness",
        "status": "Completed",
        "streak": 30,
    },
]


def seed(db, keep: bool = False, create_user: bool = True) -> int:
    """Insert the sample habits (and the test user); returns the habit count."""
    if not keep:
        removed = db[HABITS_COLLECTION].delete_many({}).deleted_count
        logger.info("Cleared %d existing habits", removed)

    store = HabitStore(db)
    for fields in SAMPLE_HABITS:
        store.create(fields)
    logger.info("Inserted %d habits", len(SAMPLE_HABITS))

    if create_user:
        try:
            UserStore(db).create(TEST_USERNAME, TEST_EMAIL, TEST_PASSWORD)
            logger.info("Created test user %s / %s", TEST_USERNAME, TEST_PASSWORD)
        except DuplicateUserError:
            logger.info("Test user already exists")

    return db[HABITS_COLLECTION].count_documents({})


def main(argv=None):
    parser = argparse.ArgumentParser(description="Seed the FocusFlow database with sample data")
    parser.add_argument("--keep", action="store_true", help="keep existing habits instead of clearing them")
    parser.add_argument("--no-user", action="store_true", help="do not create the test user")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    try:
        total = seed(get_db(), keep=args.keep, create_user=not args.no_user)
        logger.info("Seeding completed, %d habits in database", total)
    finally:
        close_db()


if __name__ == "__main__":
    main()
