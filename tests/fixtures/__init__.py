"""
Test fixtures package for pass packaging tests.

This package provides factory functions for creating test objects:
- common.py: keys, certificates, signers, pass config and packagers

Usage:
    from fixtures import make_signing_material, make_packager

    def test_something():
        material = make_signing_material()
        packager = make_packager(make_raw_signer(material))
"""

from .common import (
    PASS_TYPE_ID,
    TEAM_ID,
    LOGO_PNG,
    ICON_PNG,
    SigningMaterial,
    make_rsa_key,
    make_certificate,
    key_to_pem,
    cert_to_pem,
    make_signing_material,
    make_raw_signer,
    make_cms_signer,
    make_pass_config,
    make_assets,
    make_packager,
)

__all__ = [
    "PASS_TYPE_ID",
    "TEAM_ID",
    "LOGO_PNG",
    "ICON_PNG",
    "SigningMaterial",
    "make_rsa_key",
    "make_certificate",
    "key_to_pem",
    "cert_to_pem",
    "make_signing_material",
    "make_raw_signer",
    "make_cms_signer",
    "make_pass_config",
    "make_assets",
    "make_packager",
]
