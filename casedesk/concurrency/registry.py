"""Field registries: labels, value kinds and field-level constraints.

A registry is the fixed field -> label table consulted when conflicts and
change logs are presented. It also tells the core how each field's values
are compared, so it is shared by the extractor, the ledger and the
presentation model.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from casedesk.concurrency.values import FieldKind, to_storage, validation_error


@dataclass(frozen=True)
class FieldSpec:
    """One editable field of a versioned entity."""
    name: str
    label: str
    kind: FieldKind = FieldKind.TEXT
    choices: Tuple[str, ...] = ()
    nullable: bool = True
    # Longest stored text, for fields kept in bounded columns
    max_length: Optional[int] = None
    # Entity type an id field points at, e.g. "user"
    references: Optional[str] = None


class FieldRegistry:
    """Ordered collection of ``FieldSpec`` for one entity type."""

    def __init__(self, entity_type: str, fields: Iterable[FieldSpec]):
        self.entity_type = entity_type
        self._fields: Dict[str, FieldSpec] = {}
        for spec in fields:
            if spec.name in self._fields:
                raise ValueError(f"Duplicate field '{spec.name}' in {entity_type} registry")
            self._fields[spec.name] = spec
        self._order = {name: index for index, name in enumerate(self._fields)}

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __iter__(self):
        return iter(self._fields.values())

    @property
    def field_names(self) -> List[str]:
        return list(self._fields)

    def get(self, name: str) -> Optional[FieldSpec]:
        return self._fields.get(name)

    def kind(self, name: str) -> FieldKind:
        spec = self._fields.get(name)
        return spec.kind if spec else FieldKind.JSON

    def label(self, name: str) -> str:
        spec = self._fields.get(name)
        return spec.label if spec else name

    def sort_key(self, name: str) -> Tuple[int, str]:
        """Registry order first, unknown names alphabetically after."""
        return (self._order.get(name, len(self._order)), name)

    def ordered(self, names: Iterable[str]) -> List[str]:
        return sorted(set(names), key=self.sort_key)

    def field_errors(self, values: Mapping[str, Any]) -> List[Dict[str, str]]:
        """Field-level constraint violations for a payload, in registry order."""
        errors: List[Dict[str, str]] = []
        for name in self.ordered(values):
            spec = self._fields.get(name)
            if spec is None:
                errors.append({"field": name, "message": "is not an editable field"})
                continue
            value = values[name]
            blank = value is None or (isinstance(value, str) and not value.strip())
            if blank and not spec.nullable:
                errors.append({"field": name, "message": "is required"})
                continue
            message = validation_error(spec.kind, value)
            if message:
                errors.append({"field": name, "message": message})
                continue
            if spec.choices and not blank and str(value).strip() not in spec.choices:
                errors.append(
                    {"field": name, "message": f"must be one of: {', '.join(spec.choices)}"}
                )
                continue
            if spec.max_length and not blank:
                stored = to_storage(spec.kind, value)
                if isinstance(stored, str) and len(stored) > spec.max_length:
                    errors.append(
                        {"field": name, "message": f"must be at most {spec.max_length} characters"}
                    )
        return errors


CASE_STATUSES = ("open", "closed", "void")
CASE_TYPES = ("work_injury", "personal_injury", "other")
CASE_LEVELS = ("A", "B", "C")
CLIENT_ENTITY_TYPES = ("personal", "organization")


CASE_FIELDS = FieldRegistry(
    "case",
    [
        FieldSpec("case_type", "Case type", FieldKind.CHOICE, CASE_TYPES, nullable=False),
        FieldSpec("case_level", "Case level", FieldKind.CHOICE, CASE_LEVELS, nullable=False),
        FieldSpec("status", "Case status", FieldKind.CHOICE, CASE_STATUSES, nullable=False),
        FieldSpec("closed_reason", "Closing reason"),
        FieldSpec("void_reason", "Void reason"),
        FieldSpec("department", "Department", max_length=100),
        FieldSpec("province", "Province", max_length=100),
        FieldSpec("city", "City", max_length=100),
        FieldSpec("data_source", "Data source", max_length=200),
        FieldSpec("target_amount", "Amount in dispute", FieldKind.DECIMAL, max_length=50),
        FieldSpec("agency_fee_estimate", "Estimated agency fee", FieldKind.DECIMAL, max_length=50),
        FieldSpec("sales_commission", "Sales commission", FieldKind.DECIMAL, max_length=50),
        FieldSpec("handling_fee", "Handling fee", FieldKind.DECIMAL, max_length=50),
        FieldSpec("has_contract", "Has contract", FieldKind.BOOLEAN),
        FieldSpec("contract_date", "Contract date", FieldKind.DATE),
        FieldSpec("clue_date", "Lead date", FieldKind.DATE),
        FieldSpec("entry_date", "Employment start date", FieldKind.DATE),
        FieldSpec("next_follow_up_at", "Next follow-up", FieldKind.DATETIME),
        FieldSpec("assigned_sale_id", "Assigned sale", FieldKind.UUID, references="user"),
        FieldSpec("assigned_lawyer_id", "Assigned lawyer", FieldKind.UUID, references="user"),
        FieldSpec("assigned_assistant_id", "Assigned assistant", FieldKind.UUID, references="user"),
        FieldSpec("remark", "Remark"),
        FieldSpec("insurance_types", "Insurance types", FieldKind.LIST),
        FieldSpec("participants", "Participants", FieldKind.LIST),
        FieldSpec("hearings", "Hearings", FieldKind.LIST),
        FieldSpec("collections", "Collections", FieldKind.LIST),
        FieldSpec("timeline", "Timeline", FieldKind.LIST),
    ],
)


CLIENT_FIELDS = FieldRegistry(
    "client",
    [
        FieldSpec("name", "Name", nullable=False, max_length=300),
        FieldSpec("entity_type", "Entity type", FieldKind.CHOICE, CLIENT_ENTITY_TYPES, nullable=False),
        FieldSpec("id_number", "ID number", max_length=100),
        FieldSpec("phone", "Phone", max_length=50),
        FieldSpec("address", "Address"),
        FieldSpec("remark", "Remark"),
    ],
)
