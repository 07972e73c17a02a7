#!/usr/bin/env python3
"""Supabase database setup script for HoneyBee.

Outputs the SQL for the tables the cache store uses. Copy the output and run
it in the Supabase SQL Editor.

Usage:
    # Print setup SQL to console
    python scripts/setup_supabase.py

    # Save it to a file
    python scripts/setup_supabase.py --output setup.sql

    # Verify the tables exist
    python scripts/setup_supabase.py --verify

Tables Created:
    - content_cache: key/value record holding the aggregated corpus
    - articles: one row per article, upserted on url
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime

SCHEMA_SQL = """
-- =============================================================================
-- HoneyBee Database Schema for Supabase
-- =============================================================================
-- Generated: {generated_at}
-- =============================================================================

-- -----------------------------------------------------------------------------
-- Table: content_cache
-- One row per cache key. value = {{"articles": [...], "lastUpdated": "<iso>"}}
-- -----------------------------------------------------------------------------

CREATE TABLE IF NOT EXISTS content_cache (
    key TEXT PRIMARY KEY,
    value JSONB NOT NULL,
    updated_at TIMESTAMPTZ DEFAULT NOW()
);

-- -----------------------------------------------------------------------------
-- Table: articles
-- Flat article rows, upserted by the collector on url conflict
-- -----------------------------------------------------------------------------

CREATE TABLE IF NOT EXISTS articles (
    id TEXT NOT NULL,
    url TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    excerpt TEXT DEFAULT '',
    platform_id TEXT NOT NULL,
    platform_name TEXT NOT NULL,
    author_name TEXT,
    category TEXT NOT NULL,
    content_type TEXT NOT NULL,
    tags JSONB DEFAULT '[]',
    thumbnail_url TEXT,
    published_at TIMESTAMPTZ NOT NULL,
    created_at TIMESTAMPTZ DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_articles_platform_id ON articles(platform_id);
CREATE INDEX IF NOT EXISTS idx_articles_published_at ON articles(published_at DESC);
CREATE INDEX IF NOT EXISTS idx_articles_category ON articles(category);
"""

DROP_TABLES_SQL = """
DROP TABLE IF EXISTS articles;
DROP TABLE IF EXISTS content_cache;
"""

REQUIRED_TABLES = {"content_cache": "key", "articles": "url"}


async def verify_tables() -> dict:
    """Verify that all required tables exist in Supabase."""
    try:
        from supabase import create_client
        from src.config.settings import get_settings

        settings = get_settings()
        if not settings.supabase_configured:
            return {"success": False, "error": "SUPABASE_URL and SUPABASE_KEY must be set"}

        supabase = create_client(
            settings.supabase_url,
            settings.supabase_key.get_secret_value(),
        )

        results = {"success": True, "tables": {}, "missing": [], "errors": []}

        for table, column in REQUIRED_TABLES.items():
            try:
                response = supabase.table(table).select(column).limit(1).execute()
                results["tables"][table] = {
                    "exists": True,
                    "accessible": True,
                    "row_count": len(response.data) if response.data else 0,
                }
            except Exception as e:
                error_str = str(e)
                if "does not exist" in error_str.lower() or "relation" in error_str.lower():
                    results["tables"][table] = {"exists": False, "accessible": False}
                    results["missing"].append(table)
                else:
                    results["tables"][table] = {"exists": "unknown", "accessible": False, "error": error_str[:100]}
                    results["errors"].append(f"{table}: {error_str[:100]}")
                results["success"] = False

        return results

    except ImportError:
        return {"success": False, "error": "Supabase client not installed. Run: pip install supabase"}
    except Exception as e:
        return {"success": False, "error": str(e)}


def print_verification_results(results: dict) -> None:
    print("\n" + "=" * 70)
    print("Supabase Table Verification Results")
    print("=" * 70)

    if "error" in results:
        print(f"\nError: {results['error']}")
        return

    for table, info in results["tables"].items():
        mark = "OK" if info.get("accessible") else "MISSING" if info.get("exists") is False else "ERROR"
        print(f"  {table:<20} {mark}")

    if results["missing"]:
        print("\nMissing tables: " + ", ".join(results["missing"]))
        print("Run the setup SQL in the Supabase SQL Editor.")
    for error in results["errors"]:
        print(f"  {error}")


def get_sql(sql_type: str = "setup") -> str:
    if sql_type == "drop":
        return DROP_TABLES_SQL
    return SCHEMA_SQL.format(generated_at=datetime.now().isoformat(timespec="seconds"))


def main():
    parser = argparse.ArgumentParser(
        description="Generate Supabase setup SQL for HoneyBee",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--output", "-o", type=str, help="Save SQL to file instead of printing")
    parser.add_argument(
        "--type", "-t",
        type=str,
        choices=["setup", "drop"],
        default="setup",
        help="Type of SQL to generate (default: setup)",
    )
    parser.add_argument("--verify", "-v", action="store_true", help="Verify that tables exist in Supabase")

    args = parser.parse_args()

    if args.verify:
        import asyncio

        results = asyncio.run(verify_tables())
        print_verification_results(results)
        sys.exit(0 if results.get("success") else 1)

    sql = get_sql(args.type)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(sql)
        print(f"SQL saved to {args.output}")
    else:
        print(sql)


if __name__ == "__main__":
    main()
