"""
Common test fixtures shared by all modules.

Provides factory functions for:
- RSA keys and a leaf/intermediate certificate pair
- Signers (raw and CMS)
- Pass configuration and packagers wired to in-memory collaborators

Key generation is slow, so conftest.py caches signing material per session.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence

from asn1crypto import cms
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.x509.oid import NameOID

from core.config.runtime import PassConfig
from core.crypto.signatures import DetachedCmsSigner, RawSigner
from orchestrator.pipeline import PassPackager
from orchestrator.sources import InMemoryAssetSource


PASS_TYPE_ID = "pass.com.example.test"
TEAM_ID = "TEAM123456"

# Minimal PNG header followed by filler; only the bytes matter
LOGO_PNG = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + bytes(range(64))
ICON_PNG = b"\x89PNG\r\n\x1a\n" + b"icon" * 16


def make_rsa_key(key_size: int = 2048) -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=key_size)


def make_certificate(
    common_name: str,
    public_key,
    *,
    issuer_name: Optional[str] = None,
    issuer_key=None,
    ca: bool = False,
) -> x509.Certificate:
    """Issue a certificate; self-signed when no issuer is given."""
    subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    issuer = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, issuer_name or common_name)])
    now = datetime.now(timezone.utc)
    builder = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer)
        .public_key(public_key)
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=365))
        .add_extension(x509.BasicConstraints(ca=ca, path_length=None), critical=True)
    )
    return builder.sign(issuer_key, hashes.SHA256())


def key_to_pem(key, password: Optional[bytes] = None) -> bytes:
    encryption = (
        serialization.BestAvailableEncryption(password)
        if password
        else serialization.NoEncryption()
    )
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=encryption,
    )


def cert_to_pem(cert: x509.Certificate) -> bytes:
    return cert.public_bytes(serialization.Encoding.PEM)


@dataclass
class SigningMaterial:
    """Signer key with its leaf certificate and issuing intermediate."""
    leaf_key: rsa.RSAPrivateKey
    leaf_cert: x509.Certificate
    intermediate_key: rsa.RSAPrivateKey
    intermediate_cert: x509.Certificate

    @property
    def key_pem(self) -> bytes:
        return key_to_pem(self.leaf_key)

    @property
    def cert_pem(self) -> bytes:
        return cert_to_pem(self.leaf_cert)

    @property
    def intermediate_pem(self) -> bytes:
        return cert_to_pem(self.intermediate_cert)


def make_signing_material() -> SigningMaterial:
    intermediate_key = make_rsa_key()
    intermediate_cert = make_certificate("Test Intermediate CA", intermediate_key.public_key(), issuer_key=intermediate_key, ca=True)
    leaf_key = make_rsa_key()
    leaf_cert = make_certificate(
        f"Pass Type ID: {PASS_TYPE_ID}",
        leaf_key.public_key(),
        issuer_name="Test Intermediate CA",
        issuer_key=intermediate_key,
    )
    return SigningMaterial(leaf_key, leaf_cert, intermediate_key, intermediate_cert)


def make_raw_signer(material: SigningMaterial) -> RawSigner:
    return RawSigner(material.leaf_key)


def make_cms_signer(material: SigningMaterial) -> DetachedCmsSigner:
    return DetachedCmsSigner(material.leaf_key, material.leaf_cert, [material.intermediate_cert])


def make_pass_config(**overrides) -> PassConfig:
    values = {
        "pass_type_identifier": PASS_TYPE_ID,
        "team_identifier": TEAM_ID,
    }
    values.update(overrides)
    return PassConfig(**values)


def make_assets(extra: Optional[dict[str, bytes]] = None) -> InMemoryAssetSource:
    assets = {"logo.png": LOGO_PNG}
    assets.update(extra or {})
    return InMemoryAssetSource(assets)


def make_packager(
    signer,
    *,
    assets: Optional[InMemoryAssetSource] = None,
    asset_names: Sequence[str] = ("logo.png",),
    **config_overrides,
) -> PassPackager:
    return PassPackager(
        pass_config=make_pass_config(**config_overrides),
        signer=signer,
        assets=assets if assets is not None else make_assets(),
        asset_names=asset_names,
    )


def load_signed_data(signature: bytes) -> cms.SignedData:
    """Parse a detached CMS signature down to its SignedData."""
    info = cms.ContentInfo.load(signature)
    assert info["content_type"].native == "signed_data"
    return info["content"]


def signed_attributes_der(signer_info: cms.SignerInfo) -> bytes:
    """The signed attributes as signed: re-tagged from [0] IMPLICIT to SET."""
    der = signer_info["signed_attrs"].dump()
    return b"\x31" + der[1:]


def signed_attribute(signer_info: cms.SignerInfo, name: str):
    values = [a["values"] for a in signer_info["signed_attrs"] if a["type"].native == name]
    assert len(values) == 1, f"expected one {name} attribute"
    return values[0][0].native


def verify_cms_attributes(public_key: rsa.RSAPublicKey, signer_info: cms.SignerInfo) -> None:
    """Raise InvalidSignature unless the SignerInfo signature verifies."""
    public_key.verify(
        signer_info["signature"].native,
        signed_attributes_der(signer_info),
        padding.PKCS1v15(),
        hashes.SHA1(),
    )
