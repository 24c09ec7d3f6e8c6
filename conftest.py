"""
Shared pytest fixtures for the EcoContract test suite.

Every test gets isolated data/output directories; PDFs used as attachments
are built on the fly with reportlab so page counts and page text are known.
"""
import base64
import os
from io import BytesIO

import pytest
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas
from pypdf import PdfReader

from ecocontract.core import paths
from ecocontract.core.models import ContractRequest, Supplier, Unit, CompanySettings


# ── Temp data directory (per-test isolation) ──────────────────────────────────

@pytest.fixture(autouse=True)
def temp_data_dir(tmp_path, monkeypatch):
    """Redirect data/output dirs to an isolated tmp directory."""
    data = str(tmp_path / "data")
    output = str(tmp_path / "output")
    os.makedirs(data, exist_ok=True)
    monkeypatch.setattr(paths, "DATA_DIR", data)
    monkeypatch.setattr(paths, "OUTPUT_DIR", output)
    monkeypatch.setattr(paths, "LOG_DIR", os.path.join(data, "logs"))
    monkeypatch.setattr(paths, "COMPANY_SETTINGS_PATH",
                        os.path.join(data, "company_settings.json"))
    for key in ("ECOCONTRACT_COMPANY_NAME", "ECOCONTRACT_FOOTER_TEXT",
                "ECOCONTRACT_DOCUMENT_TITLE", "ECOCONTRACT_PRIMARY_COLOR"):
        monkeypatch.delenv(key, raising=False)
    return data


# ── PDF helpers ───────────────────────────────────────────────────────────────

def _make_pdf(pages=1, label="DOC"):
    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    for n in range(1, pages + 1):
        c.drawString(72, 720, f"{label}-PAGE-{n}")
        c.showPage()
    c.save()
    return buf.getvalue()


def _data_url(raw, mime="application/pdf"):
    return f"data:{mime};base64," + base64.b64encode(raw).decode("ascii")


@pytest.fixture
def make_pdf():
    """make_pdf(pages, label) → PDF bytes; page n reads '<label>-PAGE-<n>'."""
    return _make_pdf


@pytest.fixture
def data_url():
    """data_url(bytes, mime) → 'data:<mime>;base64,...'"""
    return _data_url


@pytest.fixture
def pdf_pages():
    """pdf_pages(bytes) → list of extracted page texts."""
    def _pages(raw):
        return [p.extract_text() or "" for p in PdfReader(BytesIO(raw)).pages]
    return _pages


@pytest.fixture
def png_logo():
    """Small valid PNG logo as a data URL."""
    from PIL import Image
    buf = BytesIO()
    Image.new("RGB", (40, 40), (6, 78, 59)).save(buf, format="PNG")
    return _data_url(buf.getvalue(), "image/png")


# ── Sample data factories ─────────────────────────────────────────────────────

@pytest.fixture
def sample_request_data():
    """Contract request as the web form posts it (camelCase)."""
    return {
        "supplierId": "sup-001",
        "projectId": "prj-010",
        "unitId": "unit-01",
        "orderNumber": "PC-2026-0042",
        "serviceLocation": "Planta Jundiai",
        "serviceType": "Manutencao Industrial",
        "supplierBranches": "Nao aplicavel",
        "objectDescription": "Manutencao preventiva das caldeiras da planta 2.",
        "scopeDescription": "Inspecao mensal, troca de valvulas e relatorio tecnico.",
        "signers": [
            {"name": "Maria Souza", "role": "Diretora", "email": "maria@fornecedor.com.br",
             "cpf": "123.456.789-00"},
            {"name": "Joao Lima", "role": "Gerente", "email": "joao@fornecedor.com.br",
             "cpf": "987.654.321-00"},
        ],
        "technicalResponsible": "Eng. Carlos Pereira",
        "technicalResponsibleId": "CREA 123456",
        "hasMaterials": True,
        "materialsList": "Valvulas, juntas, parafusos",
        "hasLabor": True,
        "laborDetails": [{"role": "Caldeireiro", "quantity": 2},
                         {"role": "Ajudante", "quantity": 1}],
        "startDate": "2026-01-01",
        "endDate": "2026-12-31",
        "value": 15000.5,
        "paymentTerms": "30 dias apos medicao",
        "aspectStandardDraft": True,
        "aspectWarranties": True,
        "docCheckCommercial": True,
        "docCheckPO": True,
        "riskNotes": "Parada programada em julho.",
        "attachments": [],
    }


@pytest.fixture
def sample_request(sample_request_data):
    return ContractRequest.from_dict(sample_request_data)


@pytest.fixture
def sample_supplier():
    return Supplier(name="Caldeiras Paulista Ltda", cnpj="12.345.678/0001-90",
                    address="Rua das Industrias, 100\nDistrito Industrial\nJundiai - SP",
                    service_type="Manutencao")


@pytest.fixture
def sample_unit():
    return Unit(name="Resinas Brasil Jundiai", cnpj="98.765.432/0001-10",
                address="Av. Principal, 2000")


@pytest.fixture
def sample_settings():
    return CompanySettings(company_name="Grupo Teste", footer_text="https://teste.example/",
                           document_title="Checklist de Contrato")


# ── Flask test client ─────────────────────────────────────────────────────────

def _basic_auth_header(user="ecocontract", pw="changeme"):
    creds = base64.b64encode(f"{user}:{pw}".encode()).decode()
    return {"Authorization": f"Basic {creds}"}


class AuthenticatedClient:
    """Wraps Flask test client to add Basic Auth headers to every request."""
    def __init__(self, client, headers):
        self._client = client
        self._headers = headers

    def get(self, *args, **kwargs):
        kwargs.setdefault("headers", {}).update(self._headers)
        return self._client.get(*args, **kwargs)

    def post(self, *args, **kwargs):
        kwargs.setdefault("headers", {}).update(self._headers)
        return self._client.post(*args, **kwargs)


@pytest.fixture
def app(temp_data_dir, monkeypatch):
    """Create Flask app configured for testing."""
    monkeypatch.setenv("DASH_USER", "ecocontract")
    monkeypatch.setenv("DASH_PASS", "changeme")
    from app import create_app
    _app = create_app()
    _app.config["TESTING"] = True
    return _app


@pytest.fixture
def client(app):
    """Authenticated Flask test client (HTTP Basic Auth on every request)."""
    with app.test_client() as c:
        yield AuthenticatedClient(c, _basic_auth_header())


@pytest.fixture
def anon_client(app):
    """Unauthenticated test client."""
    with app.test_client() as c:
        yield c
