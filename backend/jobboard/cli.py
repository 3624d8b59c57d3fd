"""
Snapshot CLI - move data between the database and a client store snapshot file.

Usage:
    jobboard-snapshot [command] PATH [options]

Commands:
    export      Write the database into the snapshot file as the next version
    import      Load the snapshot file into an empty database

Examples:
    jobboard-snapshot export ./job-portal-storage.json
    jobboard-snapshot import ./job-portal-storage.json --key job-portal-storage
"""

import argparse
import json
import sys
from typing import Optional

from jobboard.core.config import settings
from jobboard.core.errors import JobBoardError
from jobboard.core.log import configure_logging
from jobboard.db.base import Base
from jobboard.db.session import SessionLocal, engine
from jobboard.services.snapshot import SnapshotFile


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Export or import the job board client store snapshot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    export_parser = subparsers.add_parser("export", help="Export the database to a snapshot file")
    export_parser.add_argument("path", help="Snapshot file (JSON)")
    export_parser.add_argument("--key", default=settings.SNAPSHOT_STORAGE_KEY, help="Storage key")

    import_parser = subparsers.add_parser("import", help="Import a snapshot file into an empty database")
    import_parser.add_argument("path", help="Snapshot file (JSON)")
    import_parser.add_argument("--key", default=settings.SNAPSHOT_STORAGE_KEY, help="Storage key")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    configure_logging()
    Base.metadata.create_all(bind=engine)
    snapshot = SnapshotFile(args.path, key=args.key)
    db = SessionLocal()

    try:
        if args.command == "export":
            version = snapshot.save_from_db(db)
            print(f"Wrote snapshot version {version} to {args.path}")
        else:
            counts = snapshot.load_into_db(db)
            print(
                f"Imported {counts['users']} users, {counts['jobs']} jobs "
                f"and {counts['applications']} applications"
            )
    except JobBoardError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        if e.details:
            print(json.dumps(e.details, indent=2), file=sys.stderr)
        return 1
    except (OSError, json.JSONDecodeError) as e:
        print(f"Error: cannot read snapshot file: {e}", file=sys.stderr)
        return 1
    finally:
        db.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
