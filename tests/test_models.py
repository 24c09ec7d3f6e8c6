"""
Tests for ecocontract.core.models: camelCase parsing and record validation.
"""
from decimal import Decimal

import pytest

from ecocontract.core.models import (
    ContractRequest, LaborDetail, Attachment, Signer, Supplier, Unit, CompanySettings,
    DEFAULT_COMPANY_NAME, DEFAULT_FOOTER_TEXT, DEFAULT_DOCUMENT_TITLE, DEFAULT_PRIMARY_COLOR,
)


# ═══════════════════════════════════════════════════════════════════════════════
# ContractRequest.from_dict
# ═══════════════════════════════════════════════════════════════════════════════

class TestContractRequestParsing:

    def test_basic_fields(self, sample_request):
        assert sample_request.order_number == "PC-2026-0042"
        assert sample_request.service_location == "Planta Jundiai"
        assert sample_request.technical_responsible_id == "CREA 123456"

    def test_value_is_decimal(self, sample_request):
        assert isinstance(sample_request.value, Decimal)
        assert sample_request.value == Decimal("15000.5")

    def test_value_from_string(self):
        req = ContractRequest.from_dict({"value": "2500.75"})
        assert req.value == Decimal("2500.75")

    def test_missing_value_is_zero(self):
        assert ContractRequest.from_dict({}).value == Decimal("0")

    def test_negative_value_rejected(self):
        with pytest.raises(ValueError):
            ContractRequest.from_dict({"value": -1})

    def test_garbage_value_rejected(self):
        with pytest.raises(ValueError):
            ContractRequest.from_dict({"value": "abc"})

    def test_infinite_value_rejected(self):
        with pytest.raises(ValueError):
            ContractRequest.from_dict({"value": "Infinity"})

    def test_signers_parsed_in_order(self, sample_request):
        assert [s.name for s in sample_request.signers] == ["Maria Souza", "Joao Lima"]
        assert sample_request.signers[0].cpf == "123.456.789-00"

    def test_legacy_prepostos_key(self):
        req = ContractRequest.from_dict({"prepostos": [{"name": "Ana", "taxId": "111"}]})
        assert len(req.signers) == 1
        assert req.signers[0].cpf == "111"

    def test_legacy_urgencies_key(self):
        req = ContractRequest.from_dict({"urgenciesRisks": "Prazo curto"})
        assert req.risk_notes == "Prazo curto"

    def test_labor_details(self, sample_request):
        assert [(ld.role, ld.quantity) for ld in sample_request.labor_details] == [
            ("Caldeireiro", 2), ("Ajudante", 1)]

    def test_flags_mapped(self, sample_request):
        assert sample_request.legal.standard_draft is True
        assert sample_request.legal.warranties is True
        assert sample_request.legal.confidentiality is False
        assert sample_request.documents.commercial is True
        assert sample_request.documents.purchase_order is True
        assert sample_request.documents.compliance is False

    def test_empty_dict_gives_defaults(self):
        req = ContractRequest.from_dict({})
        assert req.signers == []
        assert req.attachments == []
        assert req.order_number == ""

    def test_null_strings_become_empty(self):
        req = ContractRequest.from_dict({"orderNumber": None, "scopeDescription": "   "})
        assert req.order_number == ""
        assert req.scope_description == ""


# ═══════════════════════════════════════════════════════════════════════════════
# Shape validation
# ═══════════════════════════════════════════════════════════════════════════════

class TestShapeValidation:

    @pytest.mark.parametrize("payload", [
        {"signers": [None]},
        {"signers": ["Maria"]},
        {"prepostos": [42]},
        {"attachments": ["x"]},
        {"laborDetails": [None]},
        {"signers": "Maria"},
        {"attachments": {"name": "a.pdf"}},
    ])
    def test_non_object_entries_raise_value_error(self, payload):
        with pytest.raises(ValueError):
            ContractRequest.from_dict(payload)

    @pytest.mark.parametrize("cls", [ContractRequest, Supplier, Unit, CompanySettings])
    def test_top_level_non_object(self, cls):
        with pytest.raises(ValueError):
            cls.from_dict("not an object")

    def test_null_lists_are_empty(self):
        req = ContractRequest.from_dict({"signers": None, "attachments": None})
        assert req.signers == [] and req.attachments == []


class TestFlagParsing:

    @pytest.mark.parametrize("raw", [False, "false", "False", "0", "nao", "", 0, None])
    def test_false_values(self, raw):
        assert ContractRequest.from_dict({"aspectWarranties": raw}).legal.warranties is False

    @pytest.mark.parametrize("raw", [True, "true", "TRUE", "1", "sim", 1])
    def test_true_values(self, raw):
        assert ContractRequest.from_dict({"docCheckPO": raw}).documents.purchase_order is True

    def test_unrecognized_string_rejected(self):
        with pytest.raises(ValueError):
            ContractRequest.from_dict({"hasLabor": "talvez"})


# ═══════════════════════════════════════════════════════════════════════════════
# LaborDetail
# ═══════════════════════════════════════════════════════════════════════════════

class TestLaborDetail:

    def test_zero_quantity_rejected(self):
        with pytest.raises(ValueError):
            LaborDetail(role="Soldador", quantity=0)

    def test_non_integer_quantity_rejected(self):
        with pytest.raises(ValueError):
            LaborDetail.from_dict({"role": "Soldador", "quantity": "muitos"})

    def test_quantity_string_coerced(self):
        assert LaborDetail.from_dict({"role": "Soldador", "quantity": "3"}).quantity == 3

    @pytest.mark.parametrize("qty", [1.7, "1.7", "2,5", True])
    def test_fractional_or_odd_quantity_rejected(self, qty):
        with pytest.raises(ValueError):
            LaborDetail.from_dict({"role": "Soldador", "quantity": qty})

    def test_whole_float_accepted(self):
        assert LaborDetail.from_dict({"role": "Soldador", "quantity": 2.0}).quantity == 2

    def test_missing_quantity_defaults_to_one(self):
        assert LaborDetail.from_dict({"role": "Soldador"}).quantity == 1

    def test_invalid_labor_fails_whole_request(self):
        with pytest.raises(ValueError):
            ContractRequest.from_dict({"laborDetails": [{"role": "x", "quantity": -2}]})


# ═══════════════════════════════════════════════════════════════════════════════
# Attachments
# ═══════════════════════════════════════════════════════════════════════════════

class TestCurrentAttachment:

    def test_none_when_missing(self, sample_request):
        assert sample_request.current_attachment("Pedido") is None

    def test_last_added_wins(self):
        req = ContractRequest(attachments=[
            Attachment(name="pedido_v1.pdf", type="Pedido"),
            Attachment(name="serasa.pdf", type="Serasa"),
            Attachment(name="pedido_v2.pdf", type="Pedido"),
        ])
        assert req.current_attachment("Pedido").name == "pedido_v2.pdf"
        assert req.current_attachment("Serasa").name == "serasa.pdf"

    def test_file_data_key(self):
        att = Attachment.from_dict({"name": "a.pdf", "type": "CNDT", "fileData": "data:x"})
        assert att.file_data == "data:x"


# ═══════════════════════════════════════════════════════════════════════════════
# Supplier / Unit / CompanySettings
# ═══════════════════════════════════════════════════════════════════════════════

class TestRecords:

    def test_supplier_from_dict(self):
        s = Supplier.from_dict({"name": "ACME", "cnpj": "1", "serviceType": "Limpeza"})
        assert s.name == "ACME"
        assert s.service_type == "Limpeza"
        assert s.address == ""

    def test_unit_from_dict(self):
        u = Unit.from_dict({"name": "Planta 1", "cnpj": "2"})
        assert (u.name, u.cnpj) == ("Planta 1", "2")

    def test_signer_defaults(self):
        assert Signer() == Signer(name="", role="", email="", cpf="")

    def test_settings_defaults(self):
        s = CompanySettings()
        assert s.company_name == DEFAULT_COMPANY_NAME
        assert s.footer_text == DEFAULT_FOOTER_TEXT
        assert s.document_title == DEFAULT_DOCUMENT_TITLE
        assert s.primary_color == DEFAULT_PRIMARY_COLOR
        assert s.logo_base64 is None

    def test_settings_blank_fields_fall_back(self):
        s = CompanySettings.from_dict({"companyName": "", "footerText": None,
                                       "logoBase64": ""})
        assert s.company_name == DEFAULT_COMPANY_NAME
        assert s.footer_text == DEFAULT_FOOTER_TEXT
        assert s.logo_base64 is None

    def test_settings_from_dict(self):
        s = CompanySettings.from_dict({"companyName": "ACME", "primaryColor": "#112233"})
        assert s.company_name == "ACME"
        assert s.primary_color == "#112233"
