"""Descriptor model and address book."""

from .address_book import AddressBook
from .models import (
    ContractContext,
    Deployment,
    Descriptor,
    DisplayField,
    DisplayFormat,
    Eip712Context,
    FieldGroup,
    FieldReference,
    FormatParams,
    GroupField,
    Metadata,
    SimpleField,
    TokenInfo,
    VisibleCondition,
    VisibleRule,
)

__all__ = [
    "AddressBook",
    "ContractContext",
    "Deployment",
    "Descriptor",
    "DisplayField",
    "DisplayFormat",
    "Eip712Context",
    "FieldGroup",
    "FieldReference",
    "FormatParams",
    "GroupField",
    "Metadata",
    "SimpleField",
    "TokenInfo",
    "VisibleCondition",
    "VisibleRule",
]
