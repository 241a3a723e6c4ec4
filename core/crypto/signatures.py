"""
Module 02 - Signature Engine
File: signatures.py

Detached signatures over the package manifest.

Two interchangeable strategies share one contract, ``sign(manifest) -> bytes``:

- ``RawSigner``: RSA PKCS#1 v1.5 with SHA-1 over the SHA-1 digest of the
  manifest bytes; the output is the bare signature.
- ``DetachedCmsSigner``: a DER-encoded CMS SignedData (built with
  asn1crypto) with one SHA-1 signer, signed attributes (content type,
  signing time, message digest), the leaf and intermediate certificates
  attached and no embedded content.

``build_signer`` picks one from configuration. Key and certificate
problems raise KeyMaterialInvalidError; failures inside the signing
primitive raise SigningFailureError. Neither ever yields partial output.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional, Protocol, Sequence, TYPE_CHECKING, runtime_checkable

from asn1crypto import algos, cms
from asn1crypto import core as asn1_core
from asn1crypto import x509 as asn1_x509
from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa

from core.crypto.hashing import DIGEST_ALGORITHM, digest, sha1
from core.schemas.errors import KeyMaterialInvalidError, SigningFailureError

if TYPE_CHECKING:
    from core.config.runtime import SigningConfig


logger = logging.getLogger(__name__)

SIGNING_MODE_RAW = "raw"
SIGNING_MODE_CMS = "cms"
SIGNING_MODES = (SIGNING_MODE_RAW, SIGNING_MODE_CMS)

# DER of OID 1.2.840.113549.1.7.2 (id-signedData)
SIGNED_DATA_OID_DER = bytes.fromhex("06092a864886f70d010702")


@runtime_checkable
class Signer(Protocol):
    """Produces a detached signature for manifest bytes."""

    mode: str

    def sign(self, manifest: bytes) -> bytes:
        ...


# =============================================================================
# Key Material
# =============================================================================

def load_private_key(pem: bytes, password: Optional[bytes] = None):
    """
    Parse a PEM private key (PKCS#8 or traditional).

    Raises:
        KeyMaterialInvalidError: If the PEM cannot be parsed or decrypted.
    """
    try:
        return serialization.load_pem_private_key(pem, password=password)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise KeyMaterialInvalidError(
            f"Cannot load private key: {e}",
            details={"kind": "private_key"},
        ) from e


def load_certificate(pem: bytes, *, label: str = "certificate") -> x509.Certificate:
    """
    Parse a PEM X.509 certificate.

    Raises:
        KeyMaterialInvalidError: If the PEM is not a certificate.
    """
    try:
        return x509.load_pem_x509_certificate(pem)
    except ValueError as e:
        raise KeyMaterialInvalidError(
            f"Cannot load {label}: {e}",
            details={"kind": label},
        ) from e


def load_public_key(pem: bytes):
    """
    Parse a PEM public key, or take the public key of a PEM certificate.

    Raises:
        KeyMaterialInvalidError: If the PEM is neither.
    """
    try:
        return serialization.load_pem_public_key(pem)
    except (ValueError, UnsupportedAlgorithm):
        pass
    return load_certificate(pem, label="public_key").public_key()


def _public_key_der(key) -> bytes:
    return key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def key_matches_certificate(private_key, certificate: x509.Certificate) -> bool:
    """Check that the certificate carries the public half of the key."""
    return _public_key_der(private_key.public_key()) == _public_key_der(certificate.public_key())


def _to_asn1_certificate(certificate: x509.Certificate) -> asn1_x509.Certificate:
    return asn1_x509.Certificate.load(certificate.public_bytes(serialization.Encoding.DER))


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Raw Signer
# =============================================================================

class RawSigner:
    """RSA PKCS#1 v1.5 / SHA-1 signature over the manifest digest."""

    mode = SIGNING_MODE_RAW

    def __init__(self, private_key) -> None:
        if not isinstance(private_key, rsa.RSAPrivateKey):
            raise KeyMaterialInvalidError(
                f"Raw signing requires an RSA key, got {type(private_key).__name__}",
                details={"kind": "private_key", "mode": self.mode},
            )
        self._private_key = private_key

    @property
    def public_key(self) -> rsa.RSAPublicKey:
        return self._private_key.public_key()

    def sign(self, manifest: bytes) -> bytes:
        manifest_digest = sha1(manifest)
        try:
            signature = self._private_key.sign(
                manifest_digest,
                padding.PKCS1v15(),
                hashes.SHA1(),
            )
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise SigningFailureError(
                f"RSA signing failed: {e}",
                details={"mode": self.mode},
            ) from e
        logger.debug(f"Raw signature produced ({len(signature)} bytes)")
        return signature


def verify_raw_signature(public_key, signature: bytes, manifest: bytes) -> bool:
    """Check a raw signature produced by RawSigner."""
    try:
        public_key.verify(signature, sha1(manifest), padding.PKCS1v15(), hashes.SHA1())
    except InvalidSignature:
        return False
    return True


# =============================================================================
# Detached CMS Signer
# =============================================================================

class DetachedCmsSigner:
    """
    Detached CMS SignedData over the manifest.

    Exactly one SignerInfo, identified by the leaf certificate's issuer and
    serial number, with SHA-1 as its digest algorithm. Its signed attributes
    are content type (data), signing time and message digest, where the
    message digest is ``digest(manifest)``. The signature covers the DER of
    those attributes encoded as a SET. Leaf and chain certificates are
    attached; the content itself is not.
    """

    mode = SIGNING_MODE_CMS
    digest_algorithm = DIGEST_ALGORITHM

    def __init__(
        self,
        private_key,
        certificate: x509.Certificate,
        chain: Sequence[x509.Certificate] = (),
        *,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        if not isinstance(private_key, (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey)):
            raise KeyMaterialInvalidError(
                f"CMS signing requires an RSA or EC key, got {type(private_key).__name__}",
                details={"kind": "private_key", "mode": self.mode},
            )
        if not key_matches_certificate(private_key, certificate):
            raise KeyMaterialInvalidError(
                "Private key does not match the signer certificate",
                details={"kind": "certificate", "subject": certificate.subject.rfc4514_string()},
            )
        self._private_key = private_key
        self._certificate = certificate
        self._chain = list(chain)
        self._clock = clock

    @property
    def certificates(self) -> list[x509.Certificate]:
        return [self._certificate, *self._chain]

    def _signed_attributes(self, manifest: bytes) -> cms.CMSAttributes:
        signing_time = self._clock().astimezone(timezone.utc).replace(microsecond=0)
        return cms.CMSAttributes([
            cms.CMSAttribute({"type": "content_type", "values": ["data"]}),
            cms.CMSAttribute({
                "type": "signing_time",
                "values": [cms.Time({"utc_time": asn1_core.UTCTime(signing_time)})],
            }),
            cms.CMSAttribute({"type": "message_digest", "values": [digest(manifest)]}),
        ])

    def _sign_attributes(self, attrs_der: bytes) -> tuple[bytes, str]:
        if isinstance(self._private_key, rsa.RSAPrivateKey):
            return self._private_key.sign(attrs_der, padding.PKCS1v15(), hashes.SHA1()), "rsassa_pkcs1v15"
        return self._private_key.sign(attrs_der, ec.ECDSA(hashes.SHA1())), "sha1_ecdsa"

    def sign(self, manifest: bytes) -> bytes:
        leaf, *chain = [_to_asn1_certificate(c) for c in self.certificates]
        signed_attrs = self._signed_attributes(manifest)
        try:
            # standalone CMSAttributes dumps with the universal SET tag
            signature, signature_algorithm = self._sign_attributes(signed_attrs.dump())
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise SigningFailureError(
                f"CMS signing failed: {e}",
                details={"mode": self.mode},
            ) from e

        signer_info = cms.SignerInfo({
            "version": "v1",
            "sid": cms.SignerIdentifier({
                "issuer_and_serial_number": cms.IssuerAndSerialNumber({
                    "issuer": leaf.issuer,
                    "serial_number": leaf.serial_number,
                }),
            }),
            "digest_algorithm": algos.DigestAlgorithm({"algorithm": self.digest_algorithm}),
            "signed_attrs": signed_attrs,
            "signature_algorithm": algos.SignedDigestAlgorithm({"algorithm": signature_algorithm}),
            "signature": signature,
        })
        signed_data = cms.SignedData({
            "version": "v1",
            "digest_algorithms": [algos.DigestAlgorithm({"algorithm": self.digest_algorithm})],
            "encap_content_info": {"content_type": "data"},
            "certificates": [
                cms.CertificateChoices(name="certificate", value=cert) for cert in (leaf, *chain)
            ],
            "signer_infos": [signer_info],
        })
        blob = cms.ContentInfo({"content_type": "signed_data", "content": signed_data}).dump()
        logger.debug(
            f"CMS signature produced ({len(blob)} bytes, "
            f"{len(self._chain) + 1} certificates)"
        )
        return blob


def is_cms_signature(blob: bytes) -> bool:
    """True when ``blob`` is a DER ContentInfo carrying SignedData."""
    if not blob.startswith(b"\x30") or SIGNED_DATA_OID_DER not in blob[:16]:
        return False
    try:
        return cms.ContentInfo.load(blob)["content_type"].native == "signed_data"
    except (ValueError, TypeError):
        return False


# =============================================================================
# Factory
# =============================================================================

def _read_pem(inline: Optional[str], path: Optional[str], label: str) -> bytes:
    if inline:
        return inline.encode("utf-8")
    if path:
        try:
            return Path(path).expanduser().read_bytes()
        except OSError as e:
            raise KeyMaterialInvalidError(
                f"Cannot read {label} from {path}: {e}",
                details={"kind": label, "path": path},
            ) from e
    raise KeyMaterialInvalidError(
        f"No {label} configured",
        details={"kind": label},
    )


def build_signer(config: "SigningConfig") -> Signer:
    """
    Build the signer selected by ``config.mode``.

    Raises:
        KeyMaterialInvalidError: If the mode is unknown or any key or
            certificate is missing or unusable.
    """
    if config.mode not in SIGNING_MODES:
        raise KeyMaterialInvalidError(
            f"Unknown signing mode: {config.mode}",
            details={"mode": config.mode, "supported": list(SIGNING_MODES)},
        )

    password = config.private_key_password.encode("utf-8") if config.private_key_password else None
    private_key = load_private_key(
        _read_pem(config.private_key_pem, config.private_key_path, "private_key"),
        password,
    )

    if config.mode == SIGNING_MODE_RAW:
        return RawSigner(private_key)

    certificate = load_certificate(
        _read_pem(config.certificate_pem, config.certificate_path, "certificate"),
        label="certificate",
    )
    intermediate = load_certificate(
        _read_pem(config.intermediate_pem, config.intermediate_path, "intermediate_certificate"),
        label="intermediate_certificate",
    )
    return DetachedCmsSigner(private_key, certificate, [intermediate])


__all__ = [
    "SIGNING_MODE_RAW",
    "SIGNING_MODE_CMS",
    "SIGNING_MODES",
    "Signer",
    "RawSigner",
    "DetachedCmsSigner",
    "load_private_key",
    "load_certificate",
    "load_public_key",
    "key_matches_certificate",
    "verify_raw_signature",
    "is_cms_signature",
    "build_signer",
]
