#!/usr/bin/env python
"""Entry point for the orionkg HTTP server."""

import sys
from pathlib import Path

from orionkg.config import Config
from orionkg.config.constants import ENV_HOST, ENV_PORT, ERROR_INVALID_PORT


def main():
    """Run the server with configurable host and port"""
    import uvicorn

    from orionkg.api.app import app

    argv = set(sys.argv[1:])
    if "-h" in argv or "--help" in argv:
        print(f"Usage: {Path(sys.argv[0]).name}")
        print()
        print("Environment variables:")
        print(f"  {ENV_HOST}=<host>")
        print(f"  {ENV_PORT}=<port>")
        print()
        return

    server = Config.load().server
    host, port = server.host, server.port
    if not (1 <= port <= 65535):
        print(ERROR_INVALID_PORT.format(port=port))
        return

    print("Starting orionkg server...")
    print(f"  URL: http://{host}:{port}")
    print(f"  Host: {host}")
    print(f"  Port: {port}")
    print()
    print("Press Ctrl+C to stop")

    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
