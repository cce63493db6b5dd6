from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo

from invpro.domain.models import PURCHASE_REALIZED, SALE_REALIZED, Product, SaleOrder


@dataclass(frozen=True)
class PeriodTotals:
    revenue: float
    costs: float
    profit: float


@dataclass(frozen=True)
class DashboardSummary:
    total_products: int
    total_customers: int
    total_suppliers: int
    inventory_value: float
    totals: PeriodTotals
    margin_pct: float
    month: PeriodTotals
    low_stock: tuple[Product, ...]
    recent_sales: tuple[SaleOrder, ...]


def _same_month(iso: str, today: date) -> bool:
    try:
        d = date.fromisoformat(str(iso)[:10])
    except ValueError:
        return False
    return d.year == today.year and d.month == today.month


def _period(sales: list[SaleOrder], purchases: list) -> PeriodTotals:
    revenue = sum(float(s.total_amount) for s in sales)
    costs = sum(float(p.total_amount) for p in purchases)
    return PeriodTotals(revenue=revenue, costs=costs, profit=revenue - costs)


class ReportingService:
    def __init__(self, store, low_stock_threshold: int = 10):
        self.store = store
        self.low_stock_threshold = int(low_stock_threshold)

    def dashboard(self, today: Optional[date] = None) -> DashboardSummary:
        """Recompute every aggregate from the current collections."""
        today = today or date.today()
        products = self.store.products()
        sales = self.store.sales()

        completed = [s for s in sales if s.status == SALE_REALIZED]
        received = [p for p in self.store.purchases() if p.status == PURCHASE_REALIZED]

        totals = _period(completed, received)
        margin = (totals.profit / totals.revenue) * 100 if totals.revenue > 0 else 0.0
        month = _period(
            [s for s in completed if _same_month(s.date, today)],
            [p for p in received if _same_month(p.date, today)],
        )

        return DashboardSummary(
            total_products=len(products),
            total_customers=len(self.store.customers()),
            total_suppliers=len(self.store.suppliers()),
            inventory_value=sum(float(p.value_on_hand) for p in products),
            totals=totals,
            margin_pct=margin,
            month=month,
            low_stock=tuple(p for p in products if p.in_stock < self.low_stock_threshold),
            recent_sales=tuple(reversed(sales[-5:])),
        )

    def export_dashboard_excel(self, path: str, today: Optional[date] = None) -> None:
        wb = Workbook()

        def money(cell):
            cell.number_format = "#,##0.00"

        def bold_row(ws, r):
            for c in ws[r]:
                c.font = Font(bold=True)

        def set_widths(ws, widths: dict[str, int]):
            for col, w in widths.items():
                ws.column_dimensions[col].width = w

        def add_table(ws, name: str, start_row: int, start_col: int, end_row: int, end_col: int):
            ref = f"{get_column_letter(start_col)}{start_row}:{get_column_letter(end_col)}{end_row}"
            tab = Table(displayName=name, ref=ref)
            tab.tableStyleInfo = TableStyleInfo(
                name="TableStyleMedium9",
                showRowStripes=True,
                showColumnStripes=False,
            )
            ws.add_table(tab)

        summary = self.dashboard(today)

        # -------- 1) Summary --------
        ws = wb.active
        ws.title = "Summary"
        ws["A1"] = "Profit & Loss Summary"
        ws["A1"].font = Font(bold=True, size=14)

        rows = [
            ("Products", summary.total_products, "int"),
            ("Customers", summary.total_customers, "int"),
            ("Suppliers", summary.total_suppliers, "int"),
            ("Inventory value", summary.inventory_value, "money"),
            ("Total revenue", summary.totals.revenue, "money"),
            ("Total costs", summary.totals.costs, "money"),
            ("Gross profit", summary.totals.profit, "money"),
            ("Profit margin %", round(summary.margin_pct, 1), "number"),
            ("Monthly revenue", summary.month.revenue, "money"),
            ("Monthly costs", summary.month.costs, "money"),
            ("Monthly profit", summary.month.profit, "money"),
        ]

        start_row = 3
        for i, (label, val, kind) in enumerate(rows):
            r = start_row + i
            ws[f"A{r}"] = label
            ws[f"B{r}"] = val
            if kind == "money":
                money(ws[f"B{r}"])
        set_widths(ws, {"A": 24, "B": 18})

        # -------- 2) Products --------
        ws2 = wb.create_sheet("Products")
        ws2.append(["ID", "UPC", "Name", "Purchase Price", "Sales Price", "In Stock", "Value On Hand"])
        bold_row(ws2, 1)
        for r, p in enumerate(self.store.products(), start=2):
            ws2.append([p.id, p.upc, p.name, p.purchase_price, p.sales_price, p.in_stock, p.value_on_hand])
            money(ws2[f"D{r}"])
            money(ws2[f"E{r}"])
            money(ws2[f"G{r}"])
        ws2.freeze_panes = "A2"
        set_widths(ws2, {"A": 12, "B": 16, "C": 32, "D": 16, "E": 16, "F": 10, "G": 16})
        if ws2.max_row >= 2:
            add_table(ws2, "ProductsDetail", 1, 1, ws2.max_row, 7)

        # -------- 3) Orders --------
        ws3 = wb.create_sheet("Orders")
        ws3.append(["Kind", "ID", "Date", "Party", "Status", "Total"])
        bold_row(ws3, 1)
        out_row = 2
        for s in self.store.sales():
            customer = self.store.get_customer(s.customer_id)
            ws3.append(["sale", s.id, s.date, customer.name if customer else "Unknown Customer", s.status, s.total_amount])
            money(ws3[f"F{out_row}"])
            out_row += 1
        for p in self.store.purchases():
            supplier = self.store.get_supplier(p.supplier_id)
            ws3.append(["purchase", p.id, p.date, supplier.name if supplier else "Unknown Supplier", p.status, p.total_amount])
            money(ws3[f"F{out_row}"])
            out_row += 1
        ws3.freeze_panes = "A2"
        set_widths(ws3, {"A": 10, "B": 12, "C": 12, "D": 30, "E": 12, "F": 14})
        if ws3.max_row >= 2:
            add_table(ws3, "OrdersDetail", 1, 1, ws3.max_row, 6)

        wb.save(path)
