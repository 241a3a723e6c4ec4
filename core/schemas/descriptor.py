"""
Module 01 - Schemas & Errors
File: descriptor.py

Purpose: The pass descriptor (pass.json) for a store-card loyalty pass.

Field names follow the wallet pass format (camelCase aliases); field
declaration order is the serialized key order.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .canonical import dumps_compact

DESCRIPTOR_FORMAT_VERSION = 1

BarcodeFormat = Literal[
    "PKBarcodeFormatQR",
    "PKBarcodeFormatPDF417",
    "PKBarcodeFormatAztec",
    "PKBarcodeFormatCode128",
]


class _WalletModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class Barcode(_WalletModel):
    """Barcode shown on the front of the pass."""

    message: str
    format: BarcodeFormat = "PKBarcodeFormatQR"
    message_encoding: str = Field(default="iso-8859-1", alias="messageEncoding")


class PassField(_WalletModel):
    """A single key/label/value field rendered on the pass."""

    key: str
    label: Optional[str] = None
    value: Any
    currency_code: Optional[str] = Field(default=None, alias="currencyCode")


class StoreCard(_WalletModel):
    """Field groups of a store-card style pass."""

    primary_fields: list[PassField] = Field(default_factory=list, alias="primaryFields")
    secondary_fields: list[PassField] = Field(default_factory=list, alias="secondaryFields")
    auxiliary_fields: list[PassField] = Field(default_factory=list, alias="auxiliaryFields")
    back_fields: list[PassField] = Field(default_factory=list, alias="backFields")


class PassDescriptor(_WalletModel):
    """Top-level pass.json document."""

    format_version: int = Field(default=DESCRIPTOR_FORMAT_VERSION, alias="formatVersion")
    pass_type_identifier: str = Field(..., alias="passTypeIdentifier")
    serial_number: str = Field(..., alias="serialNumber", min_length=1)
    team_identifier: str = Field(..., alias="teamIdentifier")
    web_service_url: Optional[str] = Field(default=None, alias="webServiceURL")
    authentication_token: Optional[str] = Field(
        default=None,
        alias="authenticationToken",
        min_length=16,
    )
    organization_name: str = Field(..., alias="organizationName")
    description: str
    logo_text: Optional[str] = Field(default=None, alias="logoText")
    foreground_color: Optional[str] = Field(default=None, alias="foregroundColor")
    background_color: Optional[str] = Field(default=None, alias="backgroundColor")
    barcode: Optional[Barcode] = None
    store_card: StoreCard = Field(default_factory=StoreCard, alias="storeCard")

    def to_json(self) -> str:
        """Compact JSON in declaration order, unset optionals omitted."""
        return dumps_compact(self)

    def to_bytes(self) -> bytes:
        return self.to_json().encode("utf-8")

    @classmethod
    def loyalty_card(
        cls,
        *,
        pass_type_identifier: str,
        team_identifier: str,
        serial_number: str,
        holder_name: str,
        balance: float,
        organization_name: str,
        description: str,
        currency_code: str = "EUR",
        balance_label: str = "AVAILABLE",
        holder_label: str = "CARD OF",
        links_text: Optional[str] = None,
        logo_text: Optional[str] = None,
        foreground_color: Optional[str] = None,
        background_color: Optional[str] = None,
        web_service_url: Optional[str] = None,
        authentication_token: Optional[str] = None,
    ) -> "PassDescriptor":
        """
        Build the loyalty store card: balance up front, holder name below,
        optional links text on the back, QR barcode carrying the serial.
        """
        back_fields = []
        if links_text:
            back_fields.append(PassField(key="links", label="Useful Links", value=links_text))

        return cls(
            pass_type_identifier=pass_type_identifier,
            serial_number=serial_number,
            team_identifier=team_identifier,
            web_service_url=web_service_url,
            authentication_token=authentication_token,
            organization_name=organization_name,
            description=description,
            logo_text=logo_text,
            foreground_color=foreground_color,
            background_color=background_color,
            barcode=Barcode(message=serial_number),
            store_card=StoreCard(
                primary_fields=[
                    PassField(
                        key="balance",
                        label=balance_label,
                        value=balance,
                        currency_code=currency_code,
                    ),
                ],
                secondary_fields=[
                    PassField(key="name", label=holder_label, value=holder_name),
                ],
                back_fields=back_fields,
            ),
        )
