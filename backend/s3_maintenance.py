#!/usr/bin/env python3
"""
Maintenance commands for the photo bucket.

Usage:
    # Verify credentials and bucket access:
    python s3_maintenance.py check-connection
    
    # Allow browsers to PUT straight into the bucket:
    python s3_maintenance.py configure-cors --origin https://journal.example.com
    
    # Remove uploads that were never committed (see what would go first):
    python s3_maintenance.py sweep-orphans --dry-run
    python s3_maintenance.py sweep-orphans --yes

Configuration comes from the same S3_* / DATABASE_URL environment variables
as the API.
"""
import argparse
import asyncio
import sys

from app.config import settings
from app.database import AsyncSessionLocal
from app.errors import StorageError
from app.services.photo_service import PhotoService
from app.storage.s3_client import StorageClient
from app.storage.sweep import OrphanSweeper
from app.utils.logging import configure_logging


def check_connection(storage: StorageClient, args) -> int:
    print(f"Checking access to bucket '{storage.bucket}'...")
    if storage.check_connection():
        print("OK: bucket reachable")
        return 0
    print("ERROR: bucket not reachable, check endpoint, region and credentials")
    return 1


def configure_cors(storage: StorageClient, args) -> int:
    origins = args.origin or settings.cors_allowed_origins
    print(f"Configuring CORS for bucket '{storage.bucket}'...")
    
    config = storage.configure_cors(origins)
    rule = config['CORSRules'][0]
    print("CORS rules applied:")
    print(f"  - Allowed methods: {', '.join(rule['AllowedMethods'])}")
    print(f"  - Allowed origins: {', '.join(rule['AllowedOrigins'])}")
    print(f"  - Exposed headers: {', '.join(rule['ExposeHeaders'])}")
    return 0


async def _referenced_keys() -> set[str]:
    async with AsyncSessionLocal() as db:
        return await PhotoService.referenced_keys(db)


def sweep_orphans(storage: StorageClient, args) -> int:
    if not args.dry_run and not args.yes:
        answer = input(f"Delete unreferenced objects under '{args.folder}/'? Type 'yes' to continue: ")
        if answer.strip().lower() != 'yes':
            print("Cancelled.")
            return 1
    
    referenced = asyncio.run(_referenced_keys())
    report = OrphanSweeper(storage).sweep(referenced, folder=args.folder, dry_run=args.dry_run)
    
    verb = "Would delete" if args.dry_run else "Deleted"
    for key in report.deleted:
        print(f"  {verb}: {key}")
    print(
        f"Scanned {report.scanned}: {len(report.deleted)} orphaned, "
        f"{report.kept_referenced} referenced, {report.kept_recent} too recent"
    )
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='Photo bucket maintenance')
    subparsers = parser.add_subparsers(dest='command', required=True)
    
    subparsers.add_parser('check-connection', help='Verify bucket access')
    
    cors = subparsers.add_parser('configure-cors', help='Apply browser upload CORS rules')
    cors.add_argument('--origin', action='append', help='Allowed origin (repeatable)')
    
    sweep = subparsers.add_parser('sweep-orphans', help='Delete uploads no photo references')
    sweep.add_argument('--folder', default=settings.default_upload_folder, help='Folder to scan')
    sweep.add_argument('--dry-run', action='store_true', help='Only report')
    sweep.add_argument('--yes', '-y', action='store_true', help='Skip confirmation prompt')
    
    args = parser.parse_args(argv)
    configure_logging('photo-journal-cli', settings.log_level)
    
    storage = StorageClient(settings)
    if not storage.is_configured:
        print("ERROR: Missing S3 configuration!")
        print("Required environment variables:")
        print("  - S3_ACCESS_KEY_ID")
        print("  - S3_SECRET_ACCESS_KEY")
        print("  - S3_ENDPOINT (optional for AWS)")
        print(f"  - S3_BUCKET_NAME (optional, defaults to '{settings.s3_bucket_name}')")
        return 1
    
    handlers = {
        'check-connection': check_connection,
        'configure-cors': configure_cors,
        'sweep-orphans': sweep_orphans,
    }
    
    try:
        return handlers[args.command](storage, args)
    except StorageError as e:
        print(f"ERROR: {e.message}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
