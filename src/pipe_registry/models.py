from datetime import datetime, timezone
from typing import Annotated, Any, ClassVar, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    SerializationInfo,
    SerializerFunctionWrapHandler,
    model_serializer,
)
from pydantic import Tag as UnionTag


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SuppliedDocument(BaseModel):
    """Client-authored JSON that serializes back to exactly the keys it was given, nulls included.

    Defaults that were never supplied are left out; names in ``always_serialized``
    are written regardless.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    always_serialized: ClassVar[frozenset[str]] = frozenset()

    # no return annotation: the OpenAPI schema falls back to the declared fields
    @model_serializer(mode="wrap")
    def _supplied_keys(self, handler: SerializerFunctionWrapHandler, info: SerializationInfo):  # type: ignore[no-untyped-def]
        data = handler(self)
        keep = set(self.model_extra or {})
        for name, field in type(self).model_fields.items():
            if name in self.model_fields_set or name in self.always_serialized:
                keep.add(field.alias if info.by_alias and field.alias else name)
        return {key: value for key, value in data.items() if key in keep}


class Record(BaseModel):
    """Top-level stored record; null fields are omitted from its serialized form."""

    model_config = ConfigDict(populate_by_name=True)

    @model_serializer(mode="wrap")
    def _without_nulls(self, handler: SerializerFunctionWrapHandler):  # type: ignore[no-untyped-def]
        return {key: value for key, value in handler(self).items() if value is not None}


class AbiInput(SuppliedDocument):
    name: str | None = None
    type: str


class AbiFunction(SuppliedDocument):
    """One entry of a contract ABI; keys other than ``name``/``inputs`` are kept verbatim."""

    name: str | None = None
    inputs: list[AbiInput] = Field(default_factory=list)


class MethodDocs(SuppliedDocument):
    """Devdoc or userdoc object: ``methods`` maps a function signature to its documentation."""

    methods: dict[str, Any] = Field(default_factory=dict)


class DocumentedPayload(SuppliedDocument):
    always_serialized = frozenset({"kind"})

    abi: list[AbiFunction] | None = None
    devdoc: MethodDocs | None = None
    userdoc: MethodDocs | None = None


class SmartContractPayload(DocumentedPayload):
    kind: Literal["smart_contract"] = "smart_contract"
    bytecode: Any = None
    deployed_bytecode: Any = Field(default=None, alias="deployedBytecode")
    metadata: str | None = None
    solsource: str | None = None
    additional_solsources: dict[str, Any] | None = None
    jssource: str | None = None
    chainid: str | None = None


class PythonPayload(DocumentedPayload):
    kind: Literal["python"] = "python"
    pysource: str | None = None
    exported: str | None = None


class JavaScriptPayload(DocumentedPayload):
    kind: Literal["javascript"] = "javascript"
    jssource: str | None = None
    exported: str | None = None


class OpenApiPayload(JavaScriptPayload):
    kind: Literal["openapi"] = "openapi"  # type: ignore[assignment]
    openapiid: str | None = None


_SMART_CONTRACT_KEYS = frozenset(
    {"bytecode", "deployedBytecode", "deployed_bytecode", "metadata", "solsource", "additional_solsources", "chainid"}
)


def infer_payload_kind(data: dict[str, Any]) -> str:
    """Pick the payload variant for a document that does not name its ``kind``."""
    if "openapiid" in data:
        return "openapi"
    if "pysource" in data:
        return "python"
    if _SMART_CONTRACT_KEYS & data.keys():
        return "smart_contract"
    if "jssource" in data or "exported" in data:
        return "javascript"
    # abi/devdoc/userdoc alone is what solc emits
    return "smart_contract"


def _payload_kind(value: Any) -> str | None:
    if isinstance(value, dict):
        kind = value.get("kind")
        return str(kind) if kind else infer_payload_kind(value)
    return getattr(value, "kind", None)


ContainerPayload = Annotated[
    Union[
        Annotated[SmartContractPayload, UnionTag("smart_contract")],
        Annotated[PythonPayload, UnionTag("python")],
        Annotated[JavaScriptPayload, UnionTag("javascript")],
        Annotated[OpenApiPayload, UnionTag("openapi")],
    ],
    Discriminator(_payload_kind),
]


class PipeContainer(Record):
    id: str | None = Field(default=None, alias="_id")
    name: str
    container: ContainerPayload | None = None
    uri: str | None = None
    tags: list[str]
    project: str | None = None
    chainids: list[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utcnow)


class PipeFunction(Record):
    id: str | None = Field(default=None, alias="_id")
    containerid: str | None = None
    signature: str | None = None
    abi_obj: AbiFunction = Field(alias="abiObj")
    devdoc: Any = None
    userdoc: Any = None
    uri: str | None = None
    tags: list[str] = Field(default_factory=list)
    timestamp: datetime | None = None
    chainid: str | None = None


class Tag(Record):
    id: str | None = Field(default=None, alias="_id")
    name: str
    description: str | None = None
    timestamp: datetime = Field(default_factory=utcnow)
