"""Seed a development database with demo buildings and one demo user.

Creates the tables if needed and upserts a handful of Bangalore buildings,
a preferences row and a weights row so the calculator has something to
score locally.

Usage::

    python -m src.db.seed
    python -m src.db.seed --db ./data/buildings.db --reset
"""

from __future__ import annotations

import argparse
from pathlib import Path

from sqlalchemy import create_engine, delete
from sqlalchemy.orm import Session

from src.db.models import Base, Building, UserBuildingScore, UserPreferences, UserPreferenceWeights

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DEFAULT_DB_PATH = PROJECT_ROOT / "data" / "buildings.db"

DEMO_USER_ID = "demo-user"

# ---------------------------------------------------------------------------
# Demo data
# ---------------------------------------------------------------------------


def demo_buildings() -> list[Building]:
    """Return a fresh list of demo building records around central Bangalore."""
    return [
        Building(
            id="bld-indiranagar-01",
            name="Prestige Lakeside Habitat",
            locality="Indiranagar",
            latitude=12.9784,
            longitude=77.6408,
            min_price=9_500_000,
            max_price=14_000_000,
            amenities_cohort=4,
            google_rating=4.4,
        ),
        Building(
            id="bld-koramangala-01",
            name="Sobha Dewflower",
            locality="Koramangala",
            latitude=12.9352,
            longitude=77.6245,
            min_price=6_800_000,
            max_price=7_900_000,
            amenities_cohort=3,
            google_rating=4.1,
        ),
        Building(
            id="bld-whitefield-01",
            name="Brigade Cosmopolis",
            locality="Whitefield",
            latitude=12.9698,
            longitude=77.7500,
            min_price=5_200_000,
            max_price=6_100_000,
            amenities_cohort=2,
            google_rating=3.9,
        ),
        Building(
            id="bld-hsr-01",
            name="Purva Skywood",
            locality="HSR Layout",
            latitude=12.9116,
            longitude=77.6389,
            min_price=7_000_000,
            max_price=9_200_000,
            amenities_cohort=3,
            google_rating=4.2,
        ),
        Building(
            id="bld-jayanagar-01",
            name="Mantri Elegance",
            locality="Jayanagar",
            latitude=12.9250,
            longitude=77.5938,
            min_price=None,
            max_price=None,
            amenities_cohort=None,
            google_rating=None,
        ),
    ]


def demo_preferences() -> UserPreferences:
    return UserPreferences(
        user_id=DEMO_USER_ID,
        latitude=12.9352,
        longitude=77.6245,
        search_radius_km=5.0,
        max_budget=8_000_000,
        lifestyle_cohort="3",
    )


def demo_weights() -> UserPreferenceWeights:
    return UserPreferenceWeights(
        user_id=DEMO_USER_ID,
        location_weight=0.4,
        budget_weight=0.35,
        lifestyle_weight=0.25,
    )


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def seed(db_path: Path, reset: bool = False) -> None:
    """Create tables and merge the demo rows into the database at *db_path*."""
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        if reset:
            for model in (UserBuildingScore, UserPreferenceWeights, UserPreferences, Building):
                session.execute(delete(model))
            session.commit()

        for building in demo_buildings():
            session.merge(building)

        session.execute(delete(UserPreferences).where(UserPreferences.user_id == DEMO_USER_ID))
        session.execute(delete(UserPreferenceWeights).where(UserPreferenceWeights.user_id == DEMO_USER_ID))
        session.add(demo_preferences())
        session.add(demo_weights())
        session.commit()

    engine.dispose()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="python -m src.db.seed",
        description="Seed the building scores database with demo data.",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=DEFAULT_DB_PATH,
        help=f"Path to the SQLite database (default: {DEFAULT_DB_PATH}).",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Delete all buildings, preferences, weights and scores before seeding.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Entry point for the seed script."""
    args = parse_args(argv)
    db_path: Path = args.db

    print("Building Match Scores - demo seed")
    print(f"  Database : {db_path}")
    print(f"  Reset    : {args.reset}")

    seed(db_path, reset=args.reset)

    print(f"  Seeded {len(demo_buildings())} buildings and preferences for user {DEMO_USER_ID!r}")


if __name__ == "__main__":
    main()
