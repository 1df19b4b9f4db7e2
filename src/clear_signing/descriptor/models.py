# flake8: noqa
"""
In-memory ERC-7730 descriptor model.

Descriptor documents come from a flexible JSON format in which field and rule
shapes overlap. Shapes are selected by an explicit priority order instead of
relying on union validation order:

- display fields: Reference (``$ref``) > Group (``fieldGroup``) > Simple
- visibility rules: boolean > string (literal or named reference) > condition
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel
from pydantic import BeforeValidator
from pydantic import ConfigDict
from pydantic import Field
from pydantic import ValidationError

from ..errors import ParseError


FieldFormatName = Literal[
    "raw",
    "address",
    "addressName",
    "amount",
    "boolean",
    "calldata",
    "chainId",
    "date",
    "duration",
    "enum",
    "nftName",
    "number",
    "tokenAmount",
    "tokenTicker",
    "unit",
]


class EncryptionParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    fallback_label: Optional[str] = Field(default=None, alias="fallbackLabel")


class FormatParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    # tokenAmount / tokenTicker params
    token: Optional[str] = None
    token_path: Optional[str] = Field(default=None, alias="tokenPath")
    native_currency_address: Optional[Union[str, List[str]]] = Field(default=None, alias="nativeCurrencyAddress")
    threshold: Optional[Union[int, str]] = None
    message: Optional[str] = None

    # cross-chain lookups
    chain_id: Optional[int] = Field(default=None, alias="chainId")
    chain_id_path: Optional[str] = Field(default=None, alias="chainIdPath")

    # addressName params
    types: Optional[List[str]] = None
    sources: Optional[List[str]] = None

    # amount / unit params
    decimals: Optional[int] = None
    base: Optional[str] = None
    prefix: Optional[bool] = None

    # date params
    encoding: Optional[str] = None

    # enum / map params
    enum_path: Optional[str] = Field(default=None, alias="$ref")
    map_reference: Optional[str] = Field(default=None, alias="mapReference")

    # nftName params
    collection_path: Optional[str] = Field(default=None, alias="collectionPath")

    encryption: Optional[EncryptionParams] = None

    def native_currency_addresses(self) -> List[str]:
        value = self.native_currency_address
        if value is None:
            return []
        if isinstance(value, str):
            return [value.lower()]
        return [item.lower() for item in value]


class VisibleCondition(BaseModel):
    """
    Conditional visibility. Every clause present must hold for the field to show.

    ``path`` selects the compared value; it defaults to the field's own path.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="forbid")

    path: Optional[str] = None
    if_not_in: Optional[List[Any]] = Field(default=None, alias="ifNotIn")
    must_be: Optional[List[Any]] = Field(default=None, alias="mustBe")
    eq: Optional[Any] = None
    ne: Optional[Any] = None
    gt: Optional[Any] = None
    gte: Optional[Any] = None
    lt: Optional[Any] = None
    lte: Optional[Any] = None


def _select_rule_shape(value: Any) -> Any:
    if isinstance(value, (bool, str, VisibleCondition)):
        return value
    if isinstance(value, dict):
        return VisibleCondition.model_validate(value)
    return value


VisibleRule = Annotated[Union[bool, str, VisibleCondition], BeforeValidator(_select_rule_shape)]


class SimpleField(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    path: Optional[str] = None
    label: Optional[str] = None
    format: Optional[FieldFormatName] = None
    params: Optional[FormatParams] = None
    visible: Optional[VisibleRule] = None


class FieldReference(BaseModel):
    """``{"$ref": "#/definitions/name"}`` with optional per-site overrides."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    ref: str = Field(alias="$ref")
    path: Optional[str] = None
    label: Optional[str] = None
    params: Optional[FormatParams] = None
    visible: Optional[VisibleRule] = None

    @property
    def definition_name(self) -> str:
        prefix = "#/definitions/"
        if self.ref.startswith(prefix):
            return self.ref[len(prefix):]
        if self.ref.startswith("$.display.definitions."):
            return self.ref[len("$.display.definitions."):]
        return self.ref


class FieldGroup(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    label: str
    iteration: Literal["sequential", "bundled"] = "sequential"
    fields: List["DisplayField"] = Field(default_factory=list)


class GroupField(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    field_group: FieldGroup = Field(alias="fieldGroup")


def _select_field_shape(value: Any) -> Any:
    if not isinstance(value, dict):
        return value
    if "$ref" in value:
        return FieldReference.model_validate(value)
    if "fieldGroup" in value:
        return GroupField.model_validate(value)
    return SimpleField.model_validate(value)


DisplayField = Annotated[Union[FieldReference, GroupField, SimpleField], BeforeValidator(_select_field_shape)]

FieldGroup.model_rebuild()
GroupField.model_rebuild()


class DisplayFormat(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    intent: Optional[str] = None
    interpolated_intent: Optional[str] = Field(default=None, alias="interpolatedIntent")
    fields: List[DisplayField] = Field(default_factory=list)
    required: List[str] = Field(default_factory=list)
    excluded: List[str] = Field(default_factory=list)


class DescriptorDisplay(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    definitions: Dict[str, DisplayField] = Field(default_factory=dict)
    formats: Dict[str, DisplayFormat] = Field(default_factory=dict)
    visibility_rules: Dict[str, VisibleRule] = Field(default_factory=dict, alias="visibilityRules")


class Deployment(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    chain_id: int = Field(alias="chainId")
    address: str


class ContractInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    deployments: List[Deployment] = Field(default_factory=list)


class ContractContext(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: Optional[str] = Field(default=None, alias="$id")
    contract: ContractInfo


class Eip712DomainInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="allow")

    name: Optional[str] = None
    verifying_contract: Optional[str] = Field(default=None, alias="verifyingContract")


class Eip712Info(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    deployments: List[Deployment] = Field(default_factory=list)
    domain: Optional[Eip712DomainInfo] = None


class Eip712Context(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: Optional[str] = Field(default=None, alias="$id")
    eip712: Eip712Info


def _select_context_shape(value: Any) -> Any:
    if isinstance(value, dict):
        if "contract" in value:
            return ContractContext.model_validate(value)
        if "eip712" in value:
            return Eip712Context.model_validate(value)
    return value


DescriptorContext = Annotated[Union[ContractContext, Eip712Context], BeforeValidator(_select_context_shape)]


class MetadataInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    url: Optional[str] = None
    legal_name: Optional[str] = Field(default=None, alias="legalName")
    last_update: Optional[str] = Field(default=None, alias="lastUpdate")


class TokenInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: Optional[str] = None
    ticker: Optional[str] = None
    decimals: Optional[int] = None


class MapDefinition(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    entries: Dict[str, str] = Field(default_factory=dict)


class Metadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    owner: Optional[str] = None
    info: Optional[MetadataInfo] = None
    token: Optional[TokenInfo] = None
    contract_name: Optional[str] = Field(default=None, alias="contractName")
    enums: Dict[str, Dict[str, str]] = Field(default_factory=dict)
    constants: Dict[str, Any] = Field(default_factory=dict)
    address_book: Dict[str, str] = Field(default_factory=dict, alias="addressBook")
    maps: Dict[str, MapDefinition] = Field(default_factory=dict)


class Descriptor(BaseModel):
    """A parsed ERC-7730 descriptor. Read-only once constructed."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    schema_url: Optional[str] = Field(default=None, alias="$schema")
    context: DescriptorContext
    metadata: Metadata = Field(default_factory=Metadata)
    display: DescriptorDisplay = Field(default_factory=DescriptorDisplay)

    @classmethod
    def from_json(cls, text: Union[str, bytes]) -> "Descriptor":
        """
        Parse a descriptor from its JSON text.

        Raises:
            ParseError: When the document does not match the descriptor schema
        """
        try:
            return cls.model_validate_json(text)
        except ValidationError as e:
            raise ParseError(f"invalid descriptor document: {e}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Descriptor":
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ParseError(f"invalid descriptor document: {e}")

    @property
    def deployments(self) -> List[Deployment]:
        if isinstance(self.context, ContractContext):
            return self.context.contract.deployments
        return self.context.eip712.deployments

    @property
    def is_contract(self) -> bool:
        return isinstance(self.context, ContractContext)

    @property
    def is_eip712(self) -> bool:
        return isinstance(self.context, Eip712Context)

    def is_deployed_at(self, address: str, chain_id: Optional[int] = None) -> bool:
        address = address.lower()
        return any(
            d.address.lower() == address and (chain_id is None or d.chain_id == chain_id)
            for d in self.deployments
        )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)
