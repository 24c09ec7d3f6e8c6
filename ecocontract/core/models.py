"""
Contract-request records consumed by the checklist composer.

The web form posts camelCase JSON; every record exposes ``from_dict()`` that
accepts that shape and returns a plain dataclass. Records are read-only to
the composer and never outlive a single generation call.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import List, Optional

DEFAULT_COMPANY_NAME = "GRUPO RESINAS BRASIL"
DEFAULT_FOOTER_TEXT = "https://gruporesinasbrasil.com.br/"
DEFAULT_DOCUMENT_TITLE = "Solicitação de Contrato / Minuta"
DEFAULT_PRIMARY_COLOR = "#064E3B"


def _str(d: dict, *keys) -> str:
    """First non-empty value among keys, as text ('' when none)."""
    for k in keys:
        v = d.get(k)
        if v is not None and str(v).strip() != "":
            return str(v)
    return ""


_TRUE_STRINGS = ("true", "1", "yes", "sim", "on")
_FALSE_STRINGS = ("false", "0", "no", "nao", "não", "off", "")


def _bool(d: dict, key: str) -> bool:
    """Form flag as bool; strings are parsed, not truth-tested ("false" → False)."""
    v = d.get(key)
    if v is None:
        return False
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float)):
        return v != 0
    if isinstance(v, str):
        s = v.strip().lower()
        if s in _TRUE_STRINGS:
            return True
        if s in _FALSE_STRINGS:
            return False
    raise ValueError(f"invalid boolean for {key}: {v!r}")


def _require_dict(d, what: str) -> dict:
    if not isinstance(d, dict):
        raise ValueError(f"{what} must be an object, got {type(d).__name__}")
    return d


def _records(d: dict, key: str, cls, *fallback_keys) -> list:
    """List of nested records under key; anything but a list of objects is rejected."""
    items = d.get(key)
    for alt in fallback_keys:
        if items is None:
            items = d.get(alt)
    if items is None:
        return []
    if not isinstance(items, list):
        raise ValueError(f"{key} must be a list, got {type(items).__name__}")
    return [cls.from_dict(item) for item in items]


def _quantity(raw) -> int:
    if raw is None:
        return 1
    if isinstance(raw, bool):
        raise ValueError(f"invalid labor quantity: {raw!r}")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        if not raw.is_integer():
            raise ValueError(f"labor quantity must be a whole number, got {raw!r}")
        return int(raw)
    try:
        return int(str(raw).strip())
    except ValueError:
        raise ValueError(f"labor quantity must be a whole number, got {raw!r}")


@dataclass
class Signer:
    name: str = ""
    role: str = ""
    email: str = ""
    cpf: str = ""

    @classmethod
    def from_dict(cls, d: dict) -> "Signer":
        _require_dict(d, "signer")
        return cls(name=_str(d, "name"), role=_str(d, "role"),
                   email=_str(d, "email"), cpf=_str(d, "cpf", "taxId"))


@dataclass
class LaborDetail:
    role: str = ""
    quantity: int = 1

    def __post_init__(self):
        if self.quantity < 1:
            raise ValueError(f"labor quantity must be >= 1, got {self.quantity}")

    @classmethod
    def from_dict(cls, d: dict) -> "LaborDetail":
        _require_dict(d, "labor detail")
        return cls(role=_str(d, "role"), quantity=_quantity(d.get("quantity")))


@dataclass
class Attachment:
    name: str = ""
    type: str = ""
    file_data: str = ""

    @classmethod
    def from_dict(cls, d: dict) -> "Attachment":
        _require_dict(d, "attachment")
        return cls(name=_str(d, "name"), type=_str(d, "type"),
                   file_data=d.get("fileData") or d.get("file_data") or "")


@dataclass
class LegalAspects:
    standard_draft: bool = False
    non_standard_draft: bool = False
    confidentiality: bool = False
    termination: bool = False
    warranties: bool = False
    warranty_start: bool = False
    post_termination: bool = False
    public_agencies: bool = False
    advance_payment: bool = False
    non_standard: bool = False

    @classmethod
    def from_dict(cls, d: dict) -> "LegalAspects":
        return cls(
            standard_draft=_bool(d, "aspectStandardDraft"),
            non_standard_draft=_bool(d, "aspectNonStandardDraft"),
            confidentiality=_bool(d, "aspectConfidentiality"),
            termination=_bool(d, "aspectTermination"),
            warranties=_bool(d, "aspectWarranties"),
            warranty_start=_bool(d, "aspectWarrantyStart"),
            post_termination=_bool(d, "aspectPostTermination"),
            public_agencies=_bool(d, "aspectPublicAgencies"),
            advance_payment=_bool(d, "aspectAdvancePayment"),
            non_standard=_bool(d, "aspectNonStandard"),
        )


@dataclass
class DocumentChecklist:
    commercial: bool = False
    purchase_order: bool = False
    compliance: bool = False
    supplier_acceptance: bool = False
    system_registration: bool = False
    supplier_report: bool = False
    fiscal_validation: bool = False
    safety_docs: bool = False
    training_certificates: bool = False

    @classmethod
    def from_dict(cls, d: dict) -> "DocumentChecklist":
        return cls(
            commercial=_bool(d, "docCheckCommercial"),
            purchase_order=_bool(d, "docCheckPO"),
            compliance=_bool(d, "docCheckCompliance"),
            supplier_acceptance=_bool(d, "docCheckSupplierAcceptance"),
            system_registration=_bool(d, "docCheckSystemRegistration"),
            supplier_report=_bool(d, "docCheckSupplierReport"),
            fiscal_validation=_bool(d, "docCheckFiscalValidation"),
            safety_docs=_bool(d, "docCheckSafetyDocs"),
            training_certificates=_bool(d, "docCheckTrainingCertificates"),
        )


def _decimal(raw) -> Decimal:
    if raw is None or raw == "":
        return Decimal("0")
    try:
        value = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        raise ValueError(f"invalid contract value: {raw!r}")
    if not value.is_finite():
        raise ValueError(f"invalid contract value: {raw!r}")
    return value


@dataclass
class ContractRequest:
    supplier_id: str = ""
    project_id: str = ""
    unit_id: str = ""
    order_number: str = ""

    service_location: str = ""
    service_type: str = ""
    supplier_branches: str = ""

    object_description: str = ""
    scope_description: str = ""

    signers: List[Signer] = field(default_factory=list)
    technical_responsible: str = ""
    technical_responsible_id: str = ""

    has_materials: bool = False
    materials_list: str = ""
    has_equipment: bool = False
    equipment_list: str = ""
    has_rental: bool = False
    rental_list: str = ""
    has_labor: bool = False
    labor_details: List[LaborDetail] = field(default_factory=list)

    start_date: str = ""
    end_date: str = ""
    schedule_steps: str = ""
    value: Decimal = Decimal("0")
    payment_terms: str = ""
    cap_limit: str = ""
    correction_index: str = ""
    warranties: str = ""

    risk_notes: str = ""
    legal: LegalAspects = field(default_factory=LegalAspects)
    documents: DocumentChecklist = field(default_factory=DocumentChecklist)
    attachments: List[Attachment] = field(default_factory=list)

    def __post_init__(self):
        if self.value < 0:
            raise ValueError(f"contract value must be >= 0, got {self.value}")

    def current_attachment(self, type_tag: str) -> Optional[Attachment]:
        """Most recently added attachment with this type tag, if any."""
        for att in reversed(self.attachments):
            if att.type == type_tag:
                return att
        return None

    @classmethod
    def from_dict(cls, d: dict) -> "ContractRequest":
        _require_dict(d, "request")
        return cls(
            supplier_id=_str(d, "supplierId"),
            project_id=_str(d, "projectId"),
            unit_id=_str(d, "unitId"),
            order_number=_str(d, "orderNumber"),
            service_location=_str(d, "serviceLocation"),
            service_type=_str(d, "serviceType"),
            supplier_branches=_str(d, "supplierBranches"),
            object_description=_str(d, "objectDescription"),
            scope_description=_str(d, "scopeDescription"),
            signers=_records(d, "signers", Signer, "prepostos"),
            technical_responsible=_str(d, "technicalResponsible"),
            technical_responsible_id=_str(d, "technicalResponsibleId"),
            has_materials=_bool(d, "hasMaterials"),
            materials_list=_str(d, "materialsList"),
            has_equipment=_bool(d, "hasEquipment"),
            equipment_list=_str(d, "equipmentList"),
            has_rental=_bool(d, "hasRental"),
            rental_list=_str(d, "rentalList"),
            has_labor=_bool(d, "hasLabor"),
            labor_details=_records(d, "laborDetails", LaborDetail),
            start_date=_str(d, "startDate"),
            end_date=_str(d, "endDate"),
            schedule_steps=_str(d, "scheduleSteps"),
            value=_decimal(d.get("value")),
            payment_terms=_str(d, "paymentTerms"),
            cap_limit=_str(d, "capLimit"),
            correction_index=_str(d, "correctionIndex"),
            warranties=_str(d, "warranties"),
            risk_notes=_str(d, "riskNotes", "urgenciesRisks"),
            legal=LegalAspects.from_dict(d),
            documents=DocumentChecklist.from_dict(d),
            attachments=_records(d, "attachments", Attachment),
        )


@dataclass
class Supplier:
    name: str = ""
    cnpj: str = ""
    address: str = ""
    service_type: str = ""

    @classmethod
    def from_dict(cls, d: dict) -> "Supplier":
        _require_dict(d, "supplier")
        return cls(name=_str(d, "name"), cnpj=_str(d, "cnpj"),
                   address=_str(d, "address"), service_type=_str(d, "serviceType"))


@dataclass
class Unit:
    name: str = ""
    cnpj: str = ""
    address: str = ""

    @classmethod
    def from_dict(cls, d: dict) -> "Unit":
        _require_dict(d, "unit")
        return cls(name=_str(d, "name"), cnpj=_str(d, "cnpj"), address=_str(d, "address"))


@dataclass
class CompanySettings:
    company_name: str = DEFAULT_COMPANY_NAME
    logo_base64: Optional[str] = None
    footer_text: str = DEFAULT_FOOTER_TEXT
    document_title: str = DEFAULT_DOCUMENT_TITLE
    primary_color: str = DEFAULT_PRIMARY_COLOR

    @classmethod
    def from_dict(cls, d: dict) -> "CompanySettings":
        _require_dict(d, "settings")
        return cls(
            company_name=_str(d, "companyName") or DEFAULT_COMPANY_NAME,
            logo_base64=d.get("logoBase64") or None,
            footer_text=_str(d, "footerText") or DEFAULT_FOOTER_TEXT,
            document_title=_str(d, "documentTitle") or DEFAULT_DOCUMENT_TITLE,
            primary_color=_str(d, "primaryColor") or DEFAULT_PRIMARY_COLOR,
        )
