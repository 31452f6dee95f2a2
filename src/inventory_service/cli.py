#!/usr/bin/env python3
"""
Command-line interface for the Inventory Service
"""
import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .config import Settings


def ensure_cache_dir(directory: Path) -> Path:
    """Create the photo cache directory if it does not exist yet."""
    directory = Path(directory)
    if not directory.exists():
        directory.mkdir(parents=True)
        print(f"✅ Cache directory created: {directory}")
    elif not directory.is_dir():
        raise NotADirectoryError(f"{directory} exists and is not a directory")
    return directory


def build_parser() -> argparse.ArgumentParser:
    # -h is taken by --host, so help is only available as --help
    parser_cli = argparse.ArgumentParser(
        prog="inventory-service",
        description="Inventory Service - register items and their photos over HTTP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
        epilog="""
Examples:
  # Serve on localhost:8080 and keep photos in ./cache
  inventory-service -h localhost -p 8080 -c ./cache

  # API documentation is then available at http://localhost:8080/docs
        """
    )
    parser_cli.add_argument('--help', action='help', help='Show this help message and exit')
    parser_cli.add_argument('-h', '--host', type=str, required=True, help='Server host address')
    parser_cli.add_argument('-p', '--port', type=int, required=True, help='Server port')
    parser_cli.add_argument('-c', '--cache', type=Path, required=True, help='Path to cache directory')
    return parser_cli


def parse_settings(argv: Optional[List[str]] = None) -> Settings:
    args = build_parser().parse_args(argv)
    return Settings(host=args.host, port=args.port, cache_dir=args.cache)


def serve_command(settings: Settings) -> int:
    """Create the cache directory and run the API server until interrupted."""
    try:
        ensure_cache_dir(settings.cache_dir)
    except OSError as e:
        print(f"❌ Cannot use cache directory {settings.cache_dir}: {e}", file=sys.stderr)
        return 1

    import uvicorn
    from .server import create_app

    app = create_app(settings)

    print(f"🌐 Server running at http://{settings.host}:{settings.port}/")
    print(f"📂 Photos stored in: {settings.cache_dir.resolve()}")
    print(f"📖 API docs: http://{settings.host}:{settings.port}/docs")
    print(f"Press Ctrl+C to stop\n")

    try:
        uvicorn.run(app, host=settings.host, port=settings.port, log_level="info")
    except KeyboardInterrupt:
        print("\n\n👋 Server stopped")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    return serve_command(parse_settings(argv))


if __name__ == '__main__':
    sys.exit(main())
