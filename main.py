#!/usr/bin/env python3
"""
Netmagis Client - Main Entry Point

This is the main entry point for the Netmagis client CLI.
It can be run directly or imported as a module.
"""

from netmagis_client.cli.main import main

if __name__ == "__main__":
    main()
