#!/usr/bin/env python3
"""Thin loader delegating to the MCP stdio server in the interface layer."""

import sys

from interface.mcp_server import main

if __name__ == "__main__":
    sys.exit(main())
