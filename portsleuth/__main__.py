"""
PortSleuth - Main Entry Point

It can be run as: python -m portsleuth
"""

from .cli import main

if __name__ == "__main__":
    main()
