"""Human-readable booking notes.

Notes are what drivers and office staff read on manifests and invoices. New
bookings carry the same facts in typed columns; the parsers below exist for
rows written before those columns, and never raise on odd text.
"""

import re

from ..models.booking import PaymentMethod
from ..schemas.booking import InvoiceDetails

PAYMENT_METHOD_LABELS = {
    PaymentMethod.BAR: "Bar",
    PaymentMethod.SUMUP: "SumUp",
    PaymentMethod.RECHNUNG: "Auf Rechnung",
}

ONLINE_PAYMENT = "online"
STATISTICS_PAYMENT_METHODS = (ONLINE_PAYMENT, PaymentMethod.BAR.value, PaymentMethod.SUMUP.value, PaymentMethod.RECHNUNG.value)

_WHEELCHAIR_ADULTS = re.compile(r"(\d+) Erwachsene \(Rollstuhl\)")
_WHEELCHAIR_CHILDREN = re.compile(r"(\d+) Kinder \(Rollstuhl\)")


def compose_notes(
    infants: int = 0,
    wheelchair_adults: int = 0,
    wheelchair_children: int = 0,
    payment_method: PaymentMethod | str | None = None,
    invoice_requested: bool = False,
    sold_on_site: bool = False,
    invoice: InvoiceDetails | None = None,
) -> str | None:
    """Build the notes text; the same inputs always give the same text."""
    parts = []
    if infants > 0:
        parts.append(f"{infants} Kleinkinder (unter 6)")
    if wheelchair_adults > 0:
        parts.append(f"{wheelchair_adults} Erwachsene (Rollstuhl)")
    if wheelchair_children > 0:
        parts.append(f"{wheelchair_children} Kinder (Rollstuhl)")
    if payment_method:
        label = PAYMENT_METHOD_LABELS.get(payment_method, str(payment_method))
        parts.append(f"Zahlung: {label}")
    if invoice_requested:
        parts.append("Rechnung angefordert")
    if sold_on_site:
        parts.append("Verkauf vor Ort")

    notes = ", ".join(parts) if parts else None

    if invoice_requested and invoice is not None:
        invoice_note = invoice_block(invoice)
        notes = f"{notes} | {invoice_note}" if notes else invoice_note

    return notes


def invoice_block(invoice: InvoiceDetails) -> str:
    block = f"Rechnung an: {invoice.company}"
    if invoice.tax_id:
        block += f", StNr: {invoice.tax_id}"
    if invoice.street:
        block += f", {invoice.street}"
    if invoice.city:
        block += f", {invoice.city}"
    return block


def wheelchair_counts_from_notes(notes: str | None) -> tuple[int, int]:
    """(wheelchair adults, wheelchair children) mentioned in legacy notes."""
    if not notes or not isinstance(notes, str) or "Rollstuhl" not in notes:
        return 0, 0
    adults = _WHEELCHAIR_ADULTS.search(notes)
    children = _WHEELCHAIR_CHILDREN.search(notes)
    return (
        int(adults.group(1)) if adults else 0,
        int(children.group(1)) if children else 0,
    )


def payment_method_from_notes(notes: str | None) -> str:
    """
    Classify a booking's payment method from its notes.

    Lossy on purpose: first label found wins, anything unlabelled counts as
    an online payment.
    """
    if not notes:
        return ONLINE_PAYMENT
    if "Bar" in notes:
        return PaymentMethod.BAR.value
    if "SumUp" in notes:
        return PaymentMethod.SUMUP.value
    if "Auf Rechnung" in notes:
        return PaymentMethod.RECHNUNG.value
    return ONLINE_PAYMENT
