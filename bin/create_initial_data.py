#!/usr/bin/env python3
"""
Initial Data Population Script

This script populates the database with the first turf owner and, optionally,
a sample turf for a fresh installation. Run it after generating and applying the
schema with Flask-Migrate (the repository ships no migrations directory).

Usage:
    source venv/bin/activate
    flask db init
    flask db migrate -m "initial schema"
    flask db upgrade
    python bin/create_initial_data.py
"""

import os
import sys
from datetime import time
from decimal import Decimal

# Add the parent directory to the path so we can import our modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Load environment variables from .flaskenv
from dotenv import load_dotenv
load_dotenv('.flaskenv')

from turfbook import create_app, db
from turfbook.identity import Identity, Role
from turfbook.models import Member
from turfbook.turfs.services import TurfRegistry


def _ask(prompt, required=True):
    while True:
        value = input(prompt).strip()
        if value or not required:
            return value
        print("This field cannot be empty.")


def create_turf_owner():
    """Create the first turf owner interactively."""
    user_count = db.session.query(Member).count()

    if user_count > 0:
        print(f"\nMembers already exist in database ({user_count} members)")
        print("Skipping turf owner creation")
        return None

    print("\n" + "=" * 50)
    print("CREATE FIRST TURF OWNER")
    print("=" * 50)

    username = _ask("Username: ")
    firstname = _ask("First Name: ")
    lastname = _ask("Last Name: ")
    while True:
        email = _ask("Email: ")
        if '@' in email:
            break
        print("Please enter a valid email address.")

    owner = Member(
        username=username,
        firstname=firstname,
        lastname=lastname,
        email=email,
        role=Role.TURF_OWNER.value,
    )
    db.session.add(owner)
    db.session.commit()

    print(f"\n✓ Turf owner '{username}' created (ID: {owner.id})")
    return owner


def create_sample_turf(owner):
    """Register a sample turf for the new owner through the turf registry."""
    answer = _ask("\nRegister a sample turf? [y/N]: ", required=False)
    if answer.lower() != 'y':
        return None

    turf = TurfRegistry().register(
        Identity.from_member(owner),
        name='Sample Arena',
        location='Main Street',
        description='Floodlit five-a-side pitch',
        price_per_hour=Decimal('500.00'),
        open_time=time(6, 0),
        close_time=time(23, 0),
        sports=['football', 'cricket'],
        amenities=['Parking', 'Floodlights'],
    )
    print(f"✓ Turf '{turf.name}' registered (ID: {turf.id})")
    return turf


def verify_database_structure():
    """Verify that all expected tables exist."""
    print("\nVerifying database structure...")

    expected_tables = ['member', 'turfs', 'bookings', 'games', 'game_participants', 'join_requests']
    existing_tables = db.inspect(db.engine).get_table_names()

    missing_tables = [table for table in expected_tables if table not in existing_tables]
    if missing_tables:
        print(f"\nERROR: Missing tables: {missing_tables}")
        print("Please create the schema first:")
        print("  flask db init  (first install only)")
        print("  flask db migrate -m \"initial schema\"")
        print("  flask db upgrade")
        return False

    print("Database structure verification complete!")
    return True


def main():
    """Main function to set up initial data."""
    print("=" * 60)
    print("TURFBOOK - Initial Data Setup")
    print("=" * 60)

    app = create_app(os.getenv('FLASK_CONFIG') or 'development')

    with app.app_context():
        if not verify_database_structure():
            sys.exit(1)

        owner = create_turf_owner()
        turf = create_sample_turf(owner) if owner else None

        print("\n" + "=" * 60)
        print("SETUP COMPLETE!")
        print("=" * 60)
        print(f"Turf owner created: {'Yes' if owner else 'No'}")
        print(f"Sample turf created: {'Yes' if turf else 'No'}")


if __name__ == '__main__':
    main()
