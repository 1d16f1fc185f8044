#!/usr/bin/env python3
"""
Local CLI for the Content Delivery Service

Maintenance commands for a content folder:
- Deploying archives that have no extracted folder yet
- Validating extracted packages
- Listing packages
- Running the HTTP server

Usage:
    python -m cli.local init --path ./content
    python -m cli.local validate --path ./content --json
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))


def _open_store(path):
    from contentpacks.store import PackageStore

    if not os.path.isdir(path):
        print(f"Error: Path does not exist: {path}")
        return None
    return PackageStore(path)


def cmd_init(args):
    """Extract archives that have no matching folder."""
    from contentpacks.bootstrap import bootstrap

    store = _open_store(args.path)
    if store is None:
        return 1

    report = bootstrap(store, validate=False)
    for content_id in report.imported:
        print(f"  [NEW] {content_id}")
    for content_id in report.failed:
        print(f"  [FAILED] {content_id}")
    print(f"{len(report.imported)} new content packages available.")
    return 1 if report.failed else 0


def cmd_validate(args):
    """Validate descriptor and filenames of every package."""
    from contentpacks.validation import PackageValidator, get_validation_summary

    store = _open_store(args.path)
    if store is None:
        return 1

    validator = PackageValidator(store.paths)
    results = sorted(validator.check_content_packages(store), key=lambda r: r.content_id)

    if args.json:
        print(json.dumps({
            "packages": [r.to_dict() for r in results],
            "summary": get_validation_summary(results)
        }, indent=2))
    else:
        for result in results:
            status = "[OK]" if result.valid else "[INVALID]"
            print(f"  {status} {result.content_id}")
            for issue in result.issues:
                print(f"      - {issue}")
        summary = get_validation_summary(results)
        print(f"\n{summary['valid']} of {summary['total']} content packages valid")

    return 0 if all(r.valid for r in results) else 1


def cmd_list(args):
    """List package IDs."""
    store = _open_store(args.path)
    if store is None:
        return 1

    for content_id in sorted(store.list_packages()):
        print(content_id)
    return 0


def cmd_serve(args):
    """Run the HTTP server."""
    import uvicorn
    from contentpacks.config import get_local_config
    from contentpacks.server import create_app

    config = get_local_config()
    if args.path:
        config.set_content_path(args.path)

    host = args.host or config.get_host()
    port = args.port or config.get_port()

    print(f"Starting Content Delivery Service on http://{host}:{port}")
    uvicorn.run(create_app(config), host=host, port=port)
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Content Delivery Service Local CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Deploy archives dropped into the content folder
  python -m cli.local init --path ./content

  # Validate all packages and print a JSON report
  python -m cli.local validate --path ./content --json

  # List packages
  python -m cli.local list --path ./content

  # Start the server on port 8080
  python -m cli.local serve --path ./content --port 8080
"""
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Show debug logging')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # init command
    p_init = subparsers.add_parser('init', help='Extract archives without a folder')
    p_init.add_argument('--path', required=True, help='Path to content folder')
    p_init.set_defaults(func=cmd_init)

    # validate command
    p_validate = subparsers.add_parser('validate', help='Validate content packages')
    p_validate.add_argument('--path', required=True, help='Path to content folder')
    p_validate.add_argument('--json', action='store_true', help='Print a JSON report')
    p_validate.set_defaults(func=cmd_validate)

    # list command
    p_list = subparsers.add_parser('list', help='List content packages')
    p_list.add_argument('--path', required=True, help='Path to content folder')
    p_list.set_defaults(func=cmd_list)

    # serve command
    p_serve = subparsers.add_parser('serve', help='Run the HTTP server')
    p_serve.add_argument('--path', help='Path to content folder (default: from settings)')
    p_serve.add_argument('--host', help='Bind address')
    p_serve.add_argument('--port', type=int, help='Port')
    p_serve.set_defaults(func=cmd_serve)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s"
    )

    if not args.command:
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
