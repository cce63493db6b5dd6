from __future__ import annotations

from dataclasses import dataclass

from openpyxl import Workbook
from openpyxl.styles import Font

from invpro.domain.errors import NotFoundError
from invpro.domain.models import BusinessInfo


@dataclass(frozen=True)
class InvoiceLine:
    product_name: str
    upc: str
    quantity: int
    unit_price: float
    line_total: float


@dataclass(frozen=True)
class Invoice:
    number: str
    date: str
    status: str
    business: BusinessInfo
    customer_name: str
    lines: tuple[InvoiceLine, ...]
    subtotal: float
    tax_rate: float
    tax: float
    total: float


class InvoiceService:
    def __init__(self, store, tax_rate: float = 0.08):
        self.store = store
        self.tax_rate = float(tax_rate)

    def build_invoice(self, sale_id: str) -> Invoice:
        sale = self.store.get_sale(sale_id)
        if not sale:
            raise NotFoundError("Sale not found.")

        customer = self.store.get_customer(sale.customer_id)
        lines = []
        for it in sale.items:
            product = self.store.get_product(it.product_id)
            lines.append(InvoiceLine(
                product_name=product.name if product else "Unknown Product",
                upc=product.upc if product else "",
                quantity=it.quantity,
                unit_price=it.unit_price,
                line_total=it.subtotal,
            ))

        # Billed from the lines, not the stored total_amount.
        subtotal = sum(line.line_total for line in lines)
        tax = subtotal * self.tax_rate
        return Invoice(
            number=f"INV-{sale.id.upper()}",
            date=sale.date,
            status=sale.status,
            business=self.store.business_info(),
            customer_name=customer.name if customer else "Unknown Customer",
            lines=tuple(lines),
            subtotal=subtotal,
            tax_rate=self.tax_rate,
            tax=tax,
            total=subtotal + tax,
        )

    def export_invoice_excel(self, sale_id: str, path: str) -> Invoice:
        invoice = self.build_invoice(sale_id)
        biz = invoice.business

        wb = Workbook()
        ws = wb.active
        ws.title = invoice.number[:31]

        ws["A1"] = biz.name
        ws["A1"].font = Font(bold=True, size=14)
        address = ", ".join(x for x in (biz.address, biz.city, biz.state, biz.zip_code) if x)
        ws["A2"] = address
        ws["A3"] = " | ".join(x for x in (biz.phone, biz.email, biz.website) if x)
        if biz.tax_id:
            ws["A4"] = f"Tax ID: {biz.tax_id}"

        ws["E1"] = "INVOICE"
        ws["E1"].font = Font(bold=True, size=14)
        ws["E2"] = invoice.number
        ws["E3"] = invoice.date

        ws["A6"] = "Bill To"
        ws["A6"].font = Font(bold=True)
        ws["A7"] = invoice.customer_name

        ws.append([])
        ws.append(["Product", "UPC", "Qty", "Unit Price", "Total"])
        header_row = ws.max_row
        for c in ws[header_row]:
            c.font = Font(bold=True)

        for line in invoice.lines:
            ws.append([line.product_name, line.upc, line.quantity, line.unit_price, line.line_total])
            ws[f"D{ws.max_row}"].number_format = "#,##0.00"
            ws[f"E{ws.max_row}"].number_format = "#,##0.00"

        ws.append([])
        for label, value in (
            ("Subtotal", invoice.subtotal),
            (f"Tax ({invoice.tax_rate * 100:.0f}%)", invoice.tax),
            ("Total", invoice.total),
        ):
            ws.append(["", "", "", label, value])
            ws[f"E{ws.max_row}"].number_format = "#,##0.00"
        for c in ws[ws.max_row]:
            c.font = Font(bold=True)

        for col, w in {"A": 32, "B": 16, "C": 6, "D": 14, "E": 16}.items():
            ws.column_dimensions[col].width = w

        wb.save(path)
        return invoice
