"""
Receipt PDF Renderer
====================

Paints a single-page rent receipt from a TemplateConfiguration and the
landlord, tenant and payment facts.

Sections are painted in a fixed order on a reportlab canvas; later sections
paint over earlier ones. Each call owns its own buffer and canvas, so one
renderer instance can serve concurrent requests.

Background handling:
    - image: drawn full page under the text (decoded with Pillow)
    - pdf:   the text page is merged on top of the first page of the
             backdrop with PyPDF2
    - none, missing or unreadable asset: a plain border inset 30 units
"""
import logging
import os
import re
import tempfile
from dataclasses import dataclass
from datetime import date
from io import BytesIO
from typing import Callable, Optional

from PIL import Image as PILImage
from PyPDF2 import PdfReader, PdfWriter
from reportlab.lib.colors import HexColor, black
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas as pdf_canvas

from quittances.error_handlers.exceptions import MissingRequiredFactException, RenderFailureException
from .facts import Landlord, PeriodPayment, TenantFacts, format_amount, format_date
from .layout import (
    DEFAULT_TITLE, Align, BackgroundMode, FontStyle, SectionKey, SectionStyle,
    TemplateConfiguration, default_configuration,
)

logger = logging.getLogger(__name__)

FONTS = {
    FontStyle.NORMAL: 'Helvetica',
    FontStyle.BOLD: 'Helvetica-Bold',
    FontStyle.ITALIC: 'Helvetica-Oblique',
}

BORDER_INSET = 30
LINE_STEP = 15
VALUE_COLUMN = 130
SIGNATURE_SIZE = (150, 40)

FOOTER_LINES = (
    "(En bas de page) Cette quittance annule tous les reçus qui auraient pu être établis précédemment en cas de",
    "paiement partiel du montant du présent terme. Elle est à conserver pendant trois ans par le locataire (loi n° 89-",
    "462 du 6 juillet 1989 : art. 7-1).",
)
REFERENCE_TITLE = "Texte de référence :"
REFERENCE_TEXT = "- loi du 6.7.89 : art. 21"
ENERGY_SAVINGS_LINE = "(le cas échéant, contribution aux économies d'énergies) : ....... euros"

UNSAFE_FILENAME_CHARS = re.compile(r'[\\/]+')


@dataclass
class RenderFacts:
    landlord: Landlord
    tenant: TenantFacts
    payment: PeriodPayment
    today: date


@dataclass
class RenderedReceipt:
    file_name: str
    file_path: str
    content: bytes


class PageCanvas:
    """
    reportlab canvas addressed with top-left coordinates.

    ``y`` always names the top of a text line, as in the stored templates.
    """

    def __init__(self, canvas, width: float, height: float, margin: float):
        self.canvas = canvas
        self.width = width
        self.height = height
        self.margin = margin

    def _baseline(self, y: float, size: float) -> float:
        return self.height - y - size

    def text(self, value: str, x: float, y: float, style: SectionStyle,
             font_style: Optional[FontStyle] = None, align: Align = Align.LEFT):
        font = FONTS[font_style or style.font_style]
        size = style.font_size
        baseline = self._baseline(y, size)
        text_width = self.canvas.stringWidth(value, font, size)

        if align == Align.CENTER:
            left = x + ((self.width - self.margin - x) - text_width) / 2
        elif align == Align.RIGHT:
            left = self.width - self.margin - text_width
        else:
            left = x

        if style.backing_color:
            self.canvas.saveState()
            self.canvas.setFillColor(HexColor(style.backing_color), alpha=style.backing_opacity
                                     if style.backing_opacity is not None else 1.0)
            self.canvas.rect(left - 2, baseline - size * 0.25, text_width + 4, size * 1.25, stroke=0, fill=1)
            self.canvas.restoreState()

        self.canvas.setFont(font, size)
        self.canvas.setFillColor(HexColor(style.color) if style.color else black)
        if align == Align.CENTER:
            self.canvas.drawCentredString(left + text_width / 2, baseline, value)
        elif align == Align.RIGHT:
            self.canvas.drawRightString(self.width - self.margin, baseline, value)
        else:
            self.canvas.drawString(left, baseline, value)

    def image(self, path: str, x: float, y: float, width: float, height: float):
        """Draw an image whose top-left corner sits at (x, y)"""
        with PILImage.open(path) as picture:
            picture.load()
            reader = ImageReader(picture.convert('RGBA') if picture.mode == 'P' else picture.copy())
        self.canvas.drawImage(reader, x, self.height - y - height, width=width, height=height, mask='auto')

    def border(self, inset: float = BORDER_INSET):
        self.canvas.setStrokeColor(black)
        self.canvas.rect(inset, inset, self.width - 2 * inset, self.height - 2 * inset, stroke=1, fill=0)


def _render_header(page: PageCanvas, style: SectionStyle, facts: RenderFacts):
    title = style.title or DEFAULT_TITLE
    page.text(f"{title} du mois de {facts.payment.period_label}",
              style.position.x, style.position.y, style, align=style.align)


def _render_landlord_info(page: PageCanvas, style: SectionStyle, facts: RenderFacts):
    x, y = style.position.x, style.position.y
    lines = (facts.landlord.name, facts.landlord.address_line1, facts.landlord.address_line2)
    for offset, line in enumerate(lines):
        if line:
            page.text(line, x, y + offset * LINE_STEP, style, align=style.align)


def _render_tenant_info(page: PageCanvas, style: SectionStyle, facts: RenderFacts):
    x, y = style.position.x, style.position.y
    tenant = facts.tenant
    page.text(f"{tenant.honorific} {tenant.first_name} {tenant.last_name}", x, y, style, align=style.align)
    page.text(tenant.address, x, y + 15, style, align=style.align)
    page.text(f"Fait à {facts.landlord.place_of_issue}, le {format_date(facts.today)}",
              x, y + 45, style, align=style.align)


def _render_property_address(page: PageCanvas, style: SectionStyle, facts: RenderFacts):
    page.text(f"Adresse de la location : {facts.tenant.address}",
              style.position.x, style.position.y, style, align=style.align)


def _render_main_text(page: PageCanvas, style: SectionStyle, facts: RenderFacts):
    x, y = style.position.x, style.position.y
    tenant, payment = facts.tenant, facts.payment
    lines = (
        f"Je soussigné {facts.landlord.name} propriétaire du logement désigné ci-dessus, déclare avoir",
        f"reçu de {tenant.honorific} {tenant.first_name} {tenant.last_name.upper()}, la somme de "
        f"{format_amount(payment.total)} euros ({payment.amount_in_words}), au titre",
        f"du paiement du loyer et des charges pour la période de location du "
        f"{payment.period_start} au {payment.period_end}",
        "et lui en donne quittance, sous réserve de tous mes droits.",
    )
    for offset, line in enumerate(lines):
        page.text(line, x, y + offset * LINE_STEP, style)


def _render_payment_details(page: PageCanvas, style: SectionStyle, facts: RenderFacts):
    x, y = style.position.x, style.position.y
    payment = facts.payment
    value_x = x + VALUE_COLUMN

    page.text("Détail du règlement :", x, y, style, font_style=FontStyle.BOLD)
    page.text("Loyer :", x, y + 25, style, font_style=FontStyle.NORMAL)
    page.text(f"{format_amount(payment.rent_amount)} euros", value_x, y + 25, style, font_style=FontStyle.NORMAL)
    page.text("Pour charges :", x, y + 45, style, font_style=FontStyle.NORMAL)
    page.text(f"{format_amount(payment.charges or 0)} euros", value_x, y + 45, style, font_style=FontStyle.NORMAL)
    page.text(ENERGY_SAVINGS_LINE, x, y + 65, style, font_style=FontStyle.NORMAL)
    page.text("Total :", x, y + 90, style, font_style=FontStyle.BOLD)
    page.text(f"{format_amount(payment.total)} euros", value_x, y + 90, style, font_style=FontStyle.BOLD)

    paid_on = payment.payment_date or facts.today
    page.text(f"Date du paiement : le {format_date(paid_on)}", x, y + 115, style, font_style=FontStyle.NORMAL)


def _render_signature(page: PageCanvas, style: SectionStyle, facts: RenderFacts):
    x, y = style.position.x, style.position.y
    image_path = facts.landlord.signature_image_path

    if image_path and os.path.exists(image_path):
        try:
            page.image(image_path, x, y, *SIGNATURE_SIZE)
            return
        except Exception as e:
            logger.warning(f"Could not embed signature image {image_path}: {e}")

    page.text(facts.landlord.signature, x, y + 10, style, font_style=FontStyle.ITALIC)


def _render_footer(page: PageCanvas, style: SectionStyle, facts: RenderFacts):
    x, y = style.position.x, style.position.y
    for offset, line in enumerate(FOOTER_LINES):
        page.text(line, x, y + offset * LINE_STEP, style)
    page.text(REFERENCE_TITLE, x, y + 70, style, font_style=FontStyle.BOLD)
    page.text(REFERENCE_TEXT, x, y + 85, style, font_style=FontStyle.NORMAL)


SECTION_RENDERERS = {
    SectionKey.HEADER: _render_header,
    SectionKey.LANDLORD_INFO: _render_landlord_info,
    SectionKey.TENANT_INFO: _render_tenant_info,
    SectionKey.PROPERTY_ADDRESS: _render_property_address,
    SectionKey.MAIN_TEXT: _render_main_text,
    SectionKey.PAYMENT_DETAILS: _render_payment_details,
    SectionKey.SIGNATURE: _render_signature,
    SectionKey.FOOTER: _render_footer,
}


def receipt_filename(tenant: TenantFacts, month: int, year: int) -> str:
    """{year}_{MM}_quittance_de_loyer_{LASTNAME}_{Firstname}.pdf"""
    name = f"{int(year)}_{int(month):02d}_quittance_de_loyer_{tenant.last_name.upper()}_{tenant.first_name}.pdf"
    return UNSAFE_FILENAME_CHARS.sub('', name)


class ReceiptRenderer:
    """
    Turns a template configuration plus facts into PDF bytes.

    Args:
        today: Callable returning the issue date; defaults to date.today
    """

    def __init__(self, today: Optional[Callable[[], date]] = None):
        self.today = today or date.today

    def render(self, configuration: Optional[TemplateConfiguration], landlord: Landlord,
               tenant: TenantFacts, payment: PeriodPayment) -> bytes:
        """
        Render one receipt.

        Raises:
            MissingRequiredFactException: when landlord, tenant or payment is missing
            RenderFailureException: when the PDF cannot be produced
        """
        missing = [name for name, value in (('landlord', landlord), ('tenant', tenant), ('payment', payment))
                   if value is None]
        if missing:
            raise MissingRequiredFactException(
                f"Cannot render receipt without {', '.join(missing)}",
                details={'missing': missing}
            )

        configuration = configuration or default_configuration()
        facts = RenderFacts(landlord=landlord, tenant=tenant, payment=payment, today=self.today())

        try:
            return self._paint(configuration, facts)
        except (MissingRequiredFactException, RenderFailureException):
            raise
        except Exception as e:
            logger.error(f"Receipt rendering failed for {tenant.full_name} {payment.period_label}: {e}")
            raise RenderFailureException('Failed to render receipt', cause=e)

    def _paint(self, configuration: TemplateConfiguration, facts: RenderFacts) -> bytes:
        layout = configuration.layout
        width, height = layout.page_dimensions
        buffer = BytesIO()
        canvas = pdf_canvas.Canvas(buffer, pagesize=(width, height))
        canvas.setTitle(f"Quittance de loyer {facts.payment.period_label}")
        page = PageCanvas(canvas, width, height, layout.margin)

        backdrop = self._paint_background(page, configuration)

        for key in SectionKey:
            SECTION_RENDERERS[key](page, configuration.style_for(key), facts)

        canvas.showPage()
        canvas.save()

        if backdrop is None:
            return buffer.getvalue()
        return self._merge_onto(backdrop, buffer.getvalue(), width, height)

    def _paint_background(self, page: PageCanvas, configuration: TemplateConfiguration):
        """
        Paint the image backdrop or the border.

        Returns:
            The PDF backdrop page to merge under the text, or None
        """
        mode, asset = self._background_for(configuration)

        if asset and not os.path.exists(asset):
            logger.warning(f"Background asset not found, drawing border instead: {asset}")
            asset = None

        if asset and mode == BackgroundMode.IMAGE:
            try:
                page.image(asset, 0, 0, page.width, page.height)
                return None
            except Exception as e:
                logger.warning(f"Could not draw background image {asset}: {e}")
        elif asset and mode == BackgroundMode.PDF:
            try:
                reader = PdfReader(asset)
                return reader.pages[0]
            except Exception as e:
                logger.warning(f"Could not read background PDF {asset}: {e}")

        page.border()
        return None

    @staticmethod
    def _background_for(configuration: TemplateConfiguration):
        mode = configuration.layout.background_mode
        asset = configuration.layout.background_asset_ref
        if asset and mode == BackgroundMode.NONE:
            mode = BackgroundMode.PDF if asset.lower().endswith('.pdf') else BackgroundMode.IMAGE
        return mode, asset

    @staticmethod
    def _merge_onto(backdrop, overlay_bytes: bytes, width: float, height: float) -> bytes:
        overlay = PdfReader(BytesIO(overlay_bytes)).pages[0]
        backdrop.scale_to(width, height)
        backdrop.merge_page(overlay)

        writer = PdfWriter()
        writer.add_page(backdrop)
        output = BytesIO()
        writer.write(output)
        return output.getvalue()

    @staticmethod
    def _reserve_path(directory: str, file_name: str) -> str:
        """
        Claim a path for a new receipt without touching existing files.

        The suggested name is used when free; otherwise ``-2``, ``-3``... is
        appended to the stem. The claimed path exists as an empty file.
        """
        stem, extension = os.path.splitext(file_name)
        candidate = file_name
        counter = 1
        while True:
            path = os.path.join(directory, candidate)
            try:
                fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
            except FileExistsError:
                counter += 1
                candidate = f"{stem}-{counter}{extension}"
                continue
            os.close(fd)
            return path

    def render_to_file(self, configuration: Optional[TemplateConfiguration], landlord: Landlord,
                       tenant: TenantFacts, payment: PeriodPayment, directory: str) -> RenderedReceipt:
        """
        Render and write the receipt into ``directory``.

        An existing receipt file is never replaced: when the suggested name
        is taken the file is stored under a numbered variant, while
        ``file_name`` keeps the suggested name for downloads and mail
        attachments. The content appears only once fully written; a failed
        write leaves nothing behind.

        Raises:
            RenderFailureException: on any I/O failure
        """
        content = self.render(configuration, landlord, tenant, payment)
        file_name = receipt_filename(tenant, payment.month, payment.year)

        file_path = None
        temp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            file_path = self._reserve_path(directory, file_name)
            fd, temp_path = tempfile.mkstemp(dir=directory, prefix='.quittance-', suffix='.pdf.tmp')
            with os.fdopen(fd, 'wb') as handle:
                handle.write(content)
            os.replace(temp_path, file_path)
        except OSError as e:
            for leftover in (temp_path, file_path):
                if leftover and os.path.exists(leftover):
                    os.remove(leftover)
            logger.error(f"Could not write receipt {file_name} into {directory}: {e}")
            raise RenderFailureException(f"Could not write receipt file {file_name}", cause=e)

        logger.info(f"Receipt written: {file_path}")
        return RenderedReceipt(file_name=file_name, file_path=file_path, content=content)
