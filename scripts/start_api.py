#!/usr/bin/env python3
"""Startup script for the llmdiff API server."""

import argparse

import uvicorn


def main():
    """Main entry point for API server."""
    parser = argparse.ArgumentParser(
        description="Start the llmdiff API server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/start_api.py                 # Local development server
  python scripts/start_api.py --port 9000     # Custom port
  python scripts/start_api.py --reload        # Auto-reload on changes
        """,
    )

    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to (default: 8000)")
    parser.add_argument("--workers", type=int, default=1, help="Number of worker processes (default: 1)")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["critical", "error", "warning", "info", "debug"],
        help="Log level (default: info)",
    )

    args = parser.parse_args()

    print("Starting llmdiff API server")
    print(f"   Listening: http://{args.host}:{args.port}")
    print(f"   Docs:      http://{args.host}:{args.port}/docs")

    options = {
        "host": args.host,
        "port": args.port,
        "log_level": args.log_level,
    }
    if args.reload:
        options["reload"] = True
        options["reload_dirs"] = ["src"]
    else:
        options["workers"] = args.workers

    uvicorn.run("llmdiff.api.app:app", **options)


if __name__ == "__main__":
    main()
