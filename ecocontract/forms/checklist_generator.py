"""
EcoContract Checklist PDF Generator
=====================================
Renders the contract-request checklist report (A4 portrait, 15mm margins).

Layout:
  - Header repeated on every page: logo, company name, order number,
    document title + date, accent bar
  - Footer on every page: footer text + page number
  - Sections 1-7 and 9 (there is no section 8 on the paper form)
  - Two signature lines at the bottom of the last page

Every element checks the space left on the page before it is drawn; long
text blocks check per line and may continue on the next page.
"""

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from io import BytesIO
from operator import attrgetter

from reportlab.lib.colors import Color, HexColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit, ImageReader
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from ..core.models import (CompanySettings, DEFAULT_COMPANY_NAME, DEFAULT_FOOTER_TEXT,
                           DEFAULT_DOCUMENT_TITLE, DEFAULT_PRIMARY_COLOR)
from .attachment_merger import decode_data_url

log = logging.getLogger("ecocontract.checklist")

# ═══════════════════════════════════════════════════════════════════════════════
# PAGE GEOMETRY: top-origin cursor, converted with Y()
# ═══════════════════════════════════════════════════════════════════════════════
PAGE_W, PAGE_H = A4
MARGIN      = 15 * mm
CONTENT_W   = PAGE_W - 2 * MARGIN
CONTENT_TOP = 42 * mm              # first baseline below the header band
BOTTOM_LIMIT = PAGE_H - 20 * mm    # cursor may not pass this
SIGNATURE_TOP = PAGE_H - 45 * mm
LINE_H      = 4.5 * mm

# ═══════════════════════════════════════════════════════════════════════════════
# COLORS
# ═══════════════════════════════════════════════════════════════════════════════
BLACK      = HexColor("#000000")
GRAY       = HexColor("#646464")
LIGHT_GRAY = HexColor("#969696")
SECTION_BG = HexColor("#F1F5F9")
SECTION_FG = HexColor("#334155")
BOX_BG     = HexColor("#F0FDF4")
RULE       = HexColor("#C8C8C8")

PLACEHOLDER = "-"

# ═══════════════════════════════════════════════════════════════════════════════
# CHECKLIST CONSTANTS: line order on the page is the order below
# ═══════════════════════════════════════════════════════════════════════════════
MANDATORY_DOCUMENTS = [
    ("Acordo Comercial",                    attrgetter("documents.commercial")),
    ("Pedido de Compra (PO)",               attrgetter("documents.purchase_order")),
    ("Termo de Conformidade",               attrgetter("documents.compliance")),
    ("Documentos fiscais validados",        attrgetter("documents.fiscal_validation")),
    ("Documentos de segurança do trabalho", attrgetter("documents.safety_docs")),
    ("Certificados de treinamentos",        attrgetter("documents.training_certificates")),
]

LEGAL_ASPECTS = [
    ("Minuta padrão",                             attrgetter("legal.standard_draft")),
    ("Minuta NÃO padrão",                         attrgetter("legal.non_standard_draft")),
    ("Cláusulas de confidencialidade",            attrgetter("legal.confidentiality")),
    ("Cláusulas de rescisão e penalidades",       attrgetter("legal.termination")),
    ("Garantias exigidas (performance, entrega)", attrgetter("legal.warranties")),
    ("Contagem da garantia (entrega/execução)",   attrgetter("legal.warranty_start")),
    ("Obrigações pós-encerramento (sigilo)",      attrgetter("legal.post_termination")),
    ("Interação com órgãos públicos",             attrgetter("legal.public_agencies")),
    ("Cláusula de antecipação de pagamento",      attrgetter("legal.advance_payment")),
    ("Condições não padrão (Outros)",             attrgetter("legal.non_standard")),
]

# (display label, attachment type tag)
ATTACHMENT_CATEGORIES = [
    ("Pedido de Compra",        "Pedido"),
    ("Contrato Social",         "Contrato Social"),
    ("CND Federal",             "CND Federal"),
    ("CNDT Trabalhista",        "CNDT"),
    ("CRF FGTS",                "CRF FGTS"),
    ("CND Municipal",           "CND Municipal"),
    ("Certidão Sindical",       "Certidão Sindical"),
    ("Ata / Procuração",        "Ata / Procuração"),
    ("Proposta Orçamentária",   "Orçamento"),
    ("Consulta Serasa",         "Serasa"),
]

ATTACHED_FMT = "Anexado: {}"
NOT_ATTACHED = "Não anexado"
NO_SIGNERS = "Nenhum assinante adicional"


class ChecklistGenerationError(Exception):
    """The base report could not be produced."""


# ═══════════════════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

def safe_text(val) -> str:
    """Value as display text; missing or blank becomes a single dash."""
    if val is None:
        return PLACEHOLDER
    s = str(val).strip()
    if s == "" or s.lower() in ("undefined", "null"):
        return PLACEHOLDER
    return s


def format_brl(value) -> str:
    """15000.5 → 'R$ 15.000,50'"""
    try:
        amount = Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        amount = Decimal("0.00")
    us = f"{amount:,.2f}"
    return "R$ " + us.replace(",", "_").replace(".", ",").replace("_", ".")


def format_date(raw) -> str:
    """ISO date → dd/mm/yyyy; anything else passes through safe_text."""
    s = safe_text(raw)
    try:
        return datetime.strptime(s[:10], "%Y-%m-%d").strftime("%d/%m/%Y")
    except ValueError:
        return s


def _fit(txt, width, font, size) -> str:
    """Truncate a single line to the given width."""
    if stringWidth(txt, font, size) <= width:
        return txt
    while txt and stringWidth(txt + "...", font, size) > width:
        txt = txt[:-1]
    return txt + "..."


def wrap_text(txt, font, size, width) -> list:
    """simpleSplit, then break any line still wider than `width` by character.

    Tokens longer than the column (URLs, document numbers) continue on the
    next line.
    """
    lines = []
    for line in simpleSplit(txt, font, size, width):
        while stringWidth(line, font, size) > width:
            cut = 1
            while cut < len(line) and stringWidth(line[:cut + 1], font, size) <= width:
                cut += 1
            lines.append(line[:cut])
            line = line[cut:]
        lines.append(line)
    return lines


def _accent(hex_color) -> Color:
    try:
        return HexColor(hex_color or DEFAULT_PRIMARY_COLOR)
    except (ValueError, TypeError):
        log.warning("Invalid primary color %r, using default", hex_color)
        return HexColor(DEFAULT_PRIMARY_COLOR)


# ═══════════════════════════════════════════════════════════════════════════════
# RENDERER
# ═══════════════════════════════════════════════════════════════════════════════

class ChecklistRenderer:
    """One instance per generation call; owns its canvas and buffer."""

    def __init__(self, request, supplier=None, settings=None, unit=None):
        self.req = request
        self.supplier = supplier
        self.unit = unit
        settings = settings or CompanySettings()
        self.company_name = safe_text(settings.company_name or DEFAULT_COMPANY_NAME)
        self.document_title = safe_text(settings.document_title or DEFAULT_DOCUMENT_TITLE)
        self.footer_text = safe_text(settings.footer_text or DEFAULT_FOOTER_TEXT)
        self.accent = _accent(settings.primary_color)
        self.logo = self._load_logo(settings.logo_base64)
        self.today = datetime.now().strftime("%d/%m/%Y")

        self.buf = BytesIO()
        self.c = canvas.Canvas(self.buf, pagesize=A4)
        self.c.setTitle(f"Checklist de Contrato {safe_text(request.order_number)}")
        self.c.setAuthor(self.company_name)
        self.cur_y = CONTENT_TOP
        self.page_num = 1

    # ── primitives ────────────────────────────────────────────────────────────

    @staticmethod
    def Y(top_y):
        return PAGE_H - top_y

    def text(self, x, top, txt, font="Helvetica", size=9, color=BLACK, align="left"):
        c = self.c
        c.setFont(font, size)
        c.setFillColor(color)
        rl_y = self.Y(top)
        if align == "right":
            c.drawRightString(x, rl_y, txt)
        elif align == "center":
            c.drawCentredString(x, rl_y, txt)
        else:
            c.drawString(x, rl_y, txt)

    def _load_logo(self, logo_base64):
        if not logo_base64:
            return None
        try:
            raw = decode_data_url(logo_base64)
            if not raw:
                raise ValueError("empty logo payload")
            img = ImageReader(BytesIO(raw))
            img.getSize()
            return img
        except Exception as e:
            log.warning("Logo load failed, rendering without logo: %s", e)
            return None

    # ── page furniture ────────────────────────────────────────────────────────

    def draw_header(self):
        c = self.c
        if self.logo is not None:
            try:
                iw, ih = self.logo.getSize()
                scale = min(20 * mm / iw, 20 * mm / ih)
                dw, dh = iw * scale, ih * scale
                c.drawImage(self.logo, MARGIN, self.Y(10 * mm) - dh, width=dw, height=dh,
                            preserveAspectRatio=True, mask="auto")
            except Exception as e:
                log.warning("Logo draw failed on page %d: %s", self.page_num, e)
                self.logo = None

        right = PAGE_W - MARGIN
        self.text(right, 15 * mm, self.company_name.upper(), "Helvetica-Bold", 14, self.accent, "right")
        self.text(right, 20 * mm, f"Pedido: {safe_text(self.req.order_number)}",
                  "Helvetica", 9, GRAY, "right")
        self.text(right, 24 * mm, f"{self.document_title} • Data: {self.today}",
                  "Helvetica", 9, GRAY, "right")

        c.setFillColor(self.accent)
        c.rect(MARGIN, self.Y(32 * mm) - 1.2 * mm, CONTENT_W, 1.2 * mm, fill=1, stroke=0)
        self.cur_y = CONTENT_TOP

    def draw_footer(self):
        self.text(MARGIN, PAGE_H - 10 * mm, self.footer_text, "Helvetica", 8, LIGHT_GRAY)
        self.text(PAGE_W - MARGIN, PAGE_H - 10 * mm, f"Página {self.page_num}",
                  "Helvetica", 8, LIGHT_GRAY, "right")

    def new_page(self):
        self.draw_footer()
        self.c.showPage()
        self.page_num += 1
        self.draw_header()

    def ensure_space(self, needed) -> bool:
        """Break the page if `needed` points do not fit. True when a break happened."""
        if self.cur_y + needed > BOTTOM_LIMIT:
            self.new_page()
            return True
        return False

    # ── blocks ────────────────────────────────────────────────────────────────

    def section(self, title):
        self.ensure_space(15 * mm)
        c = self.c
        c.setFillColor(SECTION_BG)
        c.rect(MARGIN, self.Y(self.cur_y) - 8 * mm, CONTENT_W, 8 * mm, fill=1, stroke=0)
        self.text(MARGIN + 3 * mm, self.cur_y + 5.5 * mm, title.upper(),
                  "Helvetica-Bold", 10, SECTION_FG)
        self.cur_y += 12 * mm

    def label(self, txt, x=MARGIN):
        self.text(x, self.cur_y, txt.upper(), "Helvetica-Bold", 8, GRAY)

    def field_pair(self, left_label, left_value, right_label, right_value):
        """Two label/value columns on one row."""
        self.ensure_space(12 * mm)
        col2 = MARGIN + CONTENT_W / 2
        col_w = CONTENT_W / 2 - 3 * mm
        self.label(left_label)
        self.label(right_label, col2)
        self.cur_y += LINE_H
        self.text(MARGIN, self.cur_y, _fit(safe_text(left_value), col_w, "Helvetica", 10), size=10)
        self.text(col2, self.cur_y, _fit(safe_text(right_value), col_w, "Helvetica", 10), size=10)
        self.cur_y += 8 * mm

    def paragraph(self, label, body, size=9, bold=False):
        font = "Helvetica-Bold" if bold else "Helvetica"
        self.ensure_space(10 * mm)
        self.label(label)
        self.cur_y += 5 * mm
        for line in wrap_text(safe_text(body), font, size, CONTENT_W):
            self.ensure_space(5 * mm)
            if line.strip():
                self.text(MARGIN, self.cur_y, line, font, size)
            self.cur_y += LINE_H
        self.cur_y += 4 * mm

    def check_line(self, label, checked):
        self.ensure_space(6 * mm)
        mark = "X" if checked else " "
        self.text(MARGIN, self.cur_y, f"[{mark}] {label}", size=9)
        self.cur_y += 6 * mm

    def highlight_box(self, caption, main, detail=None, height=18 * mm):
        self.ensure_space(height + 4 * mm)
        c = self.c
        c.setFillColor(BOX_BG)
        c.setStrokeColor(self.accent)
        c.setLineWidth(0.6)
        c.roundRect(MARGIN, self.Y(self.cur_y) - height, CONTENT_W, height, 2 * mm, fill=1, stroke=1)
        self.text(MARGIN + 5 * mm, self.cur_y + 6 * mm, caption, "Helvetica-Bold", 8, self.accent)
        self.text(MARGIN + 5 * mm, self.cur_y + 13 * mm,
                  _fit(main, CONTENT_W / 2 - 8 * mm, "Helvetica-Bold", 13), "Helvetica-Bold", 13, self.accent)
        if detail:
            d_label, d_value = detail
            half = MARGIN + CONTENT_W / 2
            self.text(half, self.cur_y + 6 * mm, d_label, "Helvetica-Bold", 8, self.accent)
            self.text(half, self.cur_y + 13 * mm,
                      _fit(d_value, CONTENT_W / 2 - 5 * mm, "Helvetica", 10), "Helvetica", 10)
        self.cur_y += height + 6 * mm

    # ── sections ──────────────────────────────────────────────────────────────

    def render_unit(self):
        self.section("1. Unidade Contratante")
        unit = self.unit
        self.field_pair("Razão Social", safe_text(unit.name if unit else None).upper(),
                        "CNPJ", unit.cnpj if unit else None)

    def render_supplier(self):
        self.section("2. Dados do Fornecedor")
        sup = self.supplier
        self.field_pair("Razão Social", sup.name if sup else None,
                        "CNPJ", sup.cnpj if sup else None)
        self.paragraph("Endereço", sup.address if sup else None)
        self.field_pair("Local de Prestação", self.req.service_location,
                        "Tipo de Serviço",
                        self.req.service_type or (sup.service_type if sup else None))
        self.paragraph("Filiais Envolvidas", self.req.supplier_branches or "Não aplicável")

    def render_scope(self):
        self.section("3. Objeto e Escopo")
        self.paragraph("Objeto do Fornecimento", self.req.object_description)
        self.paragraph("Descrição Detalhada do Escopo", self.req.scope_description)
        self.paragraph("Recursos e Materiais", self._resources_text())

    def _resources_text(self) -> str:
        req = self.req
        parts = []
        if req.has_materials:
            parts.append(f"Materiais: {safe_text(req.materials_list)}")
        if req.has_equipment:
            parts.append(f"Equipamentos: {safe_text(req.equipment_list)}")
        if req.has_rental:
            parts.append(f"Locação: {safe_text(req.rental_list)}")
        if req.has_labor:
            crew = "; ".join(f"{safe_text(ld.role)} x{ld.quantity}" for ld in req.labor_details)
            parts.append(f"Mão de obra: {safe_text(crew)}")
        return "\n".join(parts) if parts else "Não aplicável"

    def render_team(self):
        self.section("4. Equipe e Responsáveis")
        req = self.req
        self.highlight_box("RESPONSÁVEL TÉCNICO (ART/RRT)", safe_text(req.technical_responsible),
                           detail=("IDENTIFICAÇÃO", safe_text(req.technical_responsible_id)))
        self.ensure_space(10 * mm)
        self.label("Assinantes do Contrato (Prepostos)")
        self.cur_y += 5 * mm
        if not req.signers:
            self.ensure_space(5 * mm)
            self.text(MARGIN + 3 * mm, self.cur_y, NO_SIGNERS, size=9)
            self.cur_y += 6 * mm
        for idx, signer in enumerate(req.signers, 1):
            line = (f"{idx}. {safe_text(signer.name)} ({safe_text(signer.role)}) - "
                    f"CPF: {safe_text(signer.cpf)} - E-mail: {safe_text(signer.email)}")
            for part in wrap_text(line, "Helvetica", 9, CONTENT_W - 3 * mm):
                self.ensure_space(5 * mm)
                self.text(MARGIN + 3 * mm, self.cur_y, part, size=9)
                self.cur_y += LINE_H
            self.cur_y += 1.5 * mm
        self.cur_y += 3 * mm

    def render_commercial(self):
        self.section("5. Condições Comerciais")
        req = self.req
        period = f"{format_date(req.start_date)} até {format_date(req.end_date)}"
        self.highlight_box("VALOR TOTAL ESTIMADO", format_brl(req.value),
                           detail=("VIGÊNCIA", period), height=20 * mm)
        self.paragraph("Forma de Pagamento", req.payment_terms)
        self.paragraph("Cronograma de Faturamento", req.schedule_steps)
        self.field_pair("Cap / Limite", req.cap_limit, "Índice de Reajuste", req.correction_index)
        self.paragraph("Garantias", req.warranties)

    def render_mandatory_documents(self):
        self.section("6. Documentos Obrigatórios")
        for label, getter in MANDATORY_DOCUMENTS:
            self.check_line(label, getter(self.req))
        self.cur_y += 2 * mm

    def render_legal(self):
        self.section("7. Aspectos Jurídicos e de Risco")
        for label, getter in LEGAL_ASPECTS:
            self.check_line(label, getter(self.req))
        self.cur_y += 2 * mm
        self.paragraph("Pontos de Atenção / Riscos", self.req.risk_notes, bold=True)

    def render_manifest(self):
        self.section("9. Documentos Anexos")
        status_x = MARGIN + 70 * mm
        status_w = PAGE_W - MARGIN - status_x
        for label, tag in ATTACHMENT_CATEGORIES:
            self.ensure_space(6 * mm)
            att = self.req.current_attachment(tag)
            status = ATTACHED_FMT.format(safe_text(att.name)) if att else NOT_ATTACHED
            self.text(MARGIN, self.cur_y, label, "Helvetica-Bold", 9)
            self.text(status_x, self.cur_y, _fit(status, status_w, "Helvetica", 9), size=9,
                      color=BLACK if att else GRAY)
            self.cur_y += 6 * mm

        known = {tag for _, tag in ATTACHMENT_CATEGORIES}
        others = [a for a in self.req.attachments if a.type not in known]
        if others:
            self.ensure_space(10 * mm)
            self.label("Outros anexos")
            self.cur_y += 5 * mm
            for att in others:
                self.ensure_space(5 * mm)
                line = f"- {safe_text(att.type)}: {safe_text(att.name)}"
                self.text(MARGIN + 3 * mm, self.cur_y, _fit(line, CONTENT_W - 3 * mm, "Helvetica", 8), size=8)
                self.cur_y += 5 * mm

    def render_signatures(self):
        if self.cur_y + 10 * mm > SIGNATURE_TOP:
            self.new_page()
        c = self.c
        y = self.Y(SIGNATURE_TOP)
        c.setStrokeColor(RULE)
        c.setLineWidth(0.6)
        c.line(MARGIN, y, MARGIN + 80 * mm, y)
        c.line(PAGE_W - MARGIN - 80 * mm, y, PAGE_W - MARGIN, y)
        self.text(MARGIN + 40 * mm, SIGNATURE_TOP + 4 * mm,
                  "Solicitante / Gestor do Contrato", size=8, color=GRAY, align="center")
        self.text(PAGE_W - MARGIN - 40 * mm, SIGNATURE_TOP + 4 * mm,
                  "Responsável Técnico", size=8, color=GRAY, align="center")

    def render(self) -> dict:
        self.draw_header()
        self.render_unit()
        self.render_supplier()
        self.render_scope()
        self.render_team()
        self.render_commercial()
        self.render_mandatory_documents()
        self.render_legal()
        self.render_manifest()
        self.render_signatures()
        self.draw_footer()
        self.c.save()
        return {"ok": True, "pdf": self.buf.getvalue(), "pages": self.page_num}


def render_checklist(request, supplier=None, settings=None, unit=None) -> dict:
    """
    Render the checklist report only (no attachments).

    Returns {"ok": True, "pdf": bytes, "pages": int}.
    Raises ChecklistGenerationError if the report cannot be built.
    """
    try:
        return ChecklistRenderer(request, supplier, settings, unit).render()
    except Exception as e:
        log.error("Checklist render failed for order %s: %s",
                  getattr(request, "order_number", "?"), e, exc_info=True)
        raise ChecklistGenerationError(str(e)) from e
