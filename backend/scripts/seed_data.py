#!/usr/bin/env python3
"""Create and seed the giving DynamoDB tables for local development.

Creates the donations ledger and giving-categories tables when they do not
exist yet, then loads a starter set of giving categories with a zero
raised total. Donations themselves are only ever written by the API.

Usage:
    python scripts/seed_data.py --env dev
    python scripts/seed_data.py --env dev --create-tables
    python scripts/seed_data.py --env dev --clear-first
"""

import argparse
import os
import sys
from datetime import datetime, timezone
from decimal import Decimal

import boto3

# Global region setting (set by main() from args)
_AWS_REGION: str | None = None

# Table name (without prefix) -> hash key
TABLE_KEYS = {
    "donations": "payment_reference",
    "giving-categories": "category_id",
}


def get_dynamodb_resource():
    """Get DynamoDB resource with configured region."""
    if _AWS_REGION:
        return boto3.resource("dynamodb", region_name=_AWS_REGION)
    return boto3.resource("dynamodb")


def get_table_name(env: str, table: str) -> str:
    """Get full table name with environment prefix."""
    prefix = os.environ.get("DYNAMODB_TABLE_PREFIX", f"giving-{env}")
    return f"{prefix}-{table}"


def create_tables(env: str) -> list[str]:
    """Create any missing giving tables (on-demand billing).

    Returns:
        Names of the tables that were created
    """
    dynamodb = get_dynamodb_resource()
    existing = {table.name for table in dynamodb.tables.all()}
    created = []

    for table, hash_key in TABLE_KEYS.items():
        name = get_table_name(env, table)
        if name in existing:
            print(f"  ○ {name} already exists")
            continue

        dynamodb.create_table(
            TableName=name,
            KeySchema=[{"AttributeName": hash_key, "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": hash_key, "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        ).wait_until_exists()
        created.append(name)
        print(f"  ✓ Created {name}")

    return created


def create_giving_categories(env: str) -> list[dict]:
    """Seed the giving categories donors can choose from."""
    now = datetime.now(timezone.utc).isoformat()
    categories = [
        {
            "category_id": "cat-general",
            "title": "General Fund",
            "description": "Day-to-day ministry and operations",
            "goal": Decimal("0"),
            "raised": Decimal("0"),
            "is_active": True,
        },
        {
            "category_id": "cat-building-fund",
            "title": "Building Fund",
            "description": "New church hall",
            "goal": Decimal("500000"),
            "raised": Decimal("0"),
            "is_active": True,
        },
        {
            "category_id": "cat-missions",
            "title": "Missions",
            "description": "Support for local and international missions",
            "goal": Decimal("120000"),
            "raised": Decimal("0"),
            "is_active": True,
        },
        {
            "category_id": "cat-outreach",
            "title": "Community Outreach",
            "description": "Food parcels and school support",
            "goal": Decimal("50000"),
            "raised": Decimal("0"),
            "is_active": True,
        },
    ]

    dynamodb = get_dynamodb_resource()
    table = dynamodb.Table(get_table_name(env, "giving-categories"))

    print(f"Seeding categories table: {table.name}")

    for category in categories:
        table.put_item(Item={**category, "created_at": now, "updated_at": now})
        goal = f"R{category['goal']:,}" if category["goal"] else "no goal"
        print(f"  ✓ {category['title']} ({goal})")

    return categories


def clear_table(env: str, table_name: str) -> int:
    """Clear all items from a table.

    Returns:
        Number of items deleted
    """
    dynamodb = get_dynamodb_resource()
    table = dynamodb.Table(get_table_name(env, table_name))
    key_attrs = [k["AttributeName"] for k in table.key_schema]

    deleted = 0
    scan_kwargs: dict = {}
    while True:
        response = table.scan(**scan_kwargs)
        with table.batch_writer() as batch:
            for item in response.get("Items", []):
                batch.delete_item(Key={k: item[k] for k in key_attrs})
                deleted += 1
        if not response.get("LastEvaluatedKey"):
            return deleted
        scan_kwargs["ExclusiveStartKey"] = response["LastEvaluatedKey"]


def main(argv: list[str] | None = None) -> int:
    """Run the seed script."""
    global _AWS_REGION

    parser = argparse.ArgumentParser(description="Create and seed giving tables")
    parser.add_argument(
        "--env",
        choices=["dev", "staging", "prod"],
        default="dev",
        help="Target environment (default: dev)",
    )
    parser.add_argument(
        "--region",
        default=os.environ.get("AWS_DEFAULT_REGION", "eu-west-1"),
        help="AWS region (default: eu-west-1 or AWS_DEFAULT_REGION env var)",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before seeding",
    )
    parser.add_argument(
        "--clear-first",
        action="store_true",
        help="Clear existing categories before seeding (donations are never cleared)",
    )

    args = parser.parse_args(argv)
    _AWS_REGION = args.region

    # Safety check for production
    if args.env == "prod":
        confirm = input("⚠️  WARNING: You are about to modify PRODUCTION data. Type 'yes' to continue: ")
        if confirm.lower() != "yes":
            print("Aborted.")
            return 1

    print(f"\n🌱 Seeding {args.env} environment (region: {args.region})\n")

    if args.create_tables:
        create_tables(args.env)
        print()

    if args.clear_first:
        count = clear_table(args.env, "giving-categories")
        print(f"  Cleared {count} items from giving-categories\n")

    try:
        create_giving_categories(args.env)
    except Exception as e:
        print(f"  ❌ Failed to seed categories: {e}")
        return 1

    print("\n✅ Seed completed successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
