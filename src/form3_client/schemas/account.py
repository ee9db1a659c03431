"""
Account resource payloads.

Wire rules:
- Single resources travel as ``{"data": {...}}``, lists as ``{"data": [...]}``
- ``country``, ``name`` and ``status`` are always serialized
- Other attributes are omitted when unset (None, empty list, False)
- ``created_on`` / ``modified_on`` are server assigned and only sent back if set
- Unknown keys in responses are ignored
"""

from dataclasses import dataclass, field
from typing import Any

ACCOUNT_TYPE = "accounts"


def _string_list(raw: object) -> list[str]:
    if not raw:
        return []
    if not isinstance(raw, list):
        raise ValueError(f"Expected list of strings, got {type(raw).__name__}")
    return [str(item) for item in raw]


def _require_mapping(raw: object, what: str) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise ValueError(f"Expected JSON object for {what}, got {type(raw).__name__}")
    return raw


@dataclass
class AccountAttributes:
    """
    Banking details of an account.

    Only ``country`` is mandatory for every scheme. Which of the remaining
    fields are required depends on country and scheme; the server enforces
    that, not this class.
    """

    country: str
    name: list[str] = field(default_factory=list)
    status: str | None = None

    base_currency: str | None = None
    account_number: str | None = None
    bank_id: str | None = None
    bank_id_code: str | None = None
    bic: str | None = None
    iban: str | None = None
    customer_id: str | None = None
    alternative_names: list[str] = field(default_factory=list)
    account_classification: str | None = None
    joint_account: bool = False
    account_matching_opt_out: bool = False
    secondary_identification: str | None = None
    switched: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to API JSON format."""
        result: dict[str, Any] = {
            "country": self.country,
            "name": list(self.name),
            "status": self.status,
        }

        optional_fields = [
            ("base_currency", self.base_currency),
            ("account_number", self.account_number),
            ("bank_id", self.bank_id),
            ("bank_id_code", self.bank_id_code),
            ("bic", self.bic),
            ("iban", self.iban),
            ("customer_id", self.customer_id),
            ("alternative_names", list(self.alternative_names) or None),
            ("account_classification", self.account_classification),
            ("joint_account", self.joint_account or None),
            ("account_matching_opt_out", self.account_matching_opt_out or None),
            ("secondary_identification", self.secondary_identification),
            ("switched", self.switched or None),
        ]

        for field_name, value in optional_fields:
            if value is not None and value != "":
                result[field_name] = value

        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AccountAttributes":
        """Create from API JSON."""
        data = _require_mapping(data, "attributes")
        return cls(
            country=data.get("country") or "",
            name=_string_list(data.get("name")),
            status=data.get("status"),
            base_currency=data.get("base_currency"),
            account_number=data.get("account_number"),
            bank_id=data.get("bank_id"),
            bank_id_code=data.get("bank_id_code"),
            bic=data.get("bic"),
            iban=data.get("iban"),
            customer_id=data.get("customer_id"),
            alternative_names=_string_list(data.get("alternative_names")),
            account_classification=data.get("account_classification"),
            joint_account=bool(data.get("joint_account", False)),
            account_matching_opt_out=bool(data.get("account_matching_opt_out", False)),
            secondary_identification=data.get("secondary_identification"),
            switched=bool(data.get("switched", False)),
        )


@dataclass
class AccountData:
    """A single bank account registered with the API."""

    id: str
    organisation_id: str
    attributes: AccountAttributes
    type: str = ACCOUNT_TYPE
    # Incremented server-side on every mutation; delete must quote the current value.
    version: int = 0
    created_on: str | None = None
    modified_on: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "type": self.type,
            "id": self.id,
            "organisation_id": self.organisation_id,
            "version": self.version,
            "attributes": self.attributes.to_dict(),
        }
        if self.created_on is not None:
            result["created_on"] = self.created_on
        if self.modified_on is not None:
            result["modified_on"] = self.modified_on
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AccountData":
        data = _require_mapping(data, "account")
        attributes = data.get("attributes")
        version = data.get("version") or 0
        if not isinstance(version, int) or isinstance(version, bool):
            raise ValueError(f"Account version must be an integer, got {version!r}")
        return cls(
            id=data.get("id") or "",
            organisation_id=data.get("organisation_id") or "",
            attributes=AccountAttributes.from_dict(attributes) if attributes is not None else AccountAttributes(country=""),
            type=data.get("type") or ACCOUNT_TYPE,
            version=version,
            created_on=data.get("created_on"),
            modified_on=data.get("modified_on"),
        )


@dataclass
class Account:
    """Single-resource envelope: ``{"data": AccountData}``."""

    data: AccountData | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"data": self.data.to_dict() if self.data is not None else None}

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Account":
        payload = _require_mapping(payload, "envelope")
        data = payload.get("data")
        return cls(data=AccountData.from_dict(data) if data is not None else None)


@dataclass
class AccountList:
    """Multi-resource envelope: ``{"data": [AccountData, ...]}``.

    Order follows the server response; nothing is deduplicated.
    """

    data: list[AccountData] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.data)

    def __iter__(self):
        return iter(self.data)

    def to_dict(self) -> dict[str, Any]:
        return {"data": [item.to_dict() for item in self.data]}

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "AccountList":
        payload = _require_mapping(payload, "envelope")
        items = payload.get("data") or []
        if not isinstance(items, list):
            raise ValueError(f"Expected list under 'data', got {type(items).__name__}")
        return cls(data=[AccountData.from_dict(item) for item in items])
