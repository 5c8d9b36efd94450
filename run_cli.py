#!/usr/bin/env python3
"""
Interactive chat client for a running bridge.

Usage:
    python run_cli.py [--url WS_URL] [--user USER_ID]
"""
from roo_bridge.clients.cli.main import main

if __name__ == "__main__":
    main()
