"""
Pass Packaging CLI

Command-line interface for building and checking .pkpass packages.

Usage:
    python -m pkpass_cli generate --serial S1 --name Ada --balance 12.5 --out ada.pkpass
    python -m pkpass_cli verify ada.pkpass --public-key signer.pem
    python -m pkpass_cli config --init
"""

__version__ = "0.1.0"
