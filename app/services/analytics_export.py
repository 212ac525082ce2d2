import io

from openpyxl import Workbook
from openpyxl.chart import BarChart, Reference
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from app.schemas.summary_schemas import DashboardSnapshot

thin = Border(
    left=Side(style="thin"),
    right=Side(style="thin"),
    top=Side(style="thin"),
    bottom=Side(style="thin"),
)
header_font = Font(bold=True, color="FFFFFF")
header_fill = PatternFill("solid", fgColor="059669")
center = Alignment(horizontal="center")

MONEY_FORMAT = "#,##0.000"


def _sheet(wb, title, headers, first=False):
    ws = wb.active if first else wb.create_sheet(title)
    ws.title = title
    ws.append(headers)
    for cell in ws[1]:
        cell.font = header_font
        cell.fill = header_fill
        cell.border = thin
        cell.alignment = center
    return ws


def _finish(ws, money_columns=()):
    for row in ws.iter_rows(min_row=2):
        for cell in row:
            cell.border = thin
            cell.alignment = center
        for index in money_columns:
            row[index].number_format = MONEY_FORMAT


def build_dashboard_workbook(snapshot: DashboardSnapshot) -> io.BytesIO:
    """Spreadsheet rendition of a dashboard snapshot, ready to stream."""
    wb = Workbook()

    # =========================
    # Sheet 1: Overview
    # =========================
    ws = _sheet(wb, "Overview", ["Metric", "Value"], first=True)
    rows = [
        ["Total Orders", snapshot.total_orders],
        ["Total Revenue", snapshot.total_revenue],
        ["Average Order Value", snapshot.avg_order_value],
        ["Today Orders", snapshot.today_orders],
        ["Today Revenue", snapshot.today_revenue],
        ["Total Customers", snapshot.total_customers],
        ["Customer Retention Rate (%)", snapshot.customer_retention_rate],
        ["Avg Processing Time (h)", snapshot.avg_order_processing_time],
        ["Cancellation Rate (%)", snapshot.cancellation_rate],
    ]
    for r in rows:
        ws.append(r)
    _finish(ws)

    # =========================
    # Sheet 2: Orders by status
    # =========================
    ws2 = _sheet(wb, "Status", ["Status", "Orders", "Revenue"])
    for status, count in snapshot.orders_by_status.items():
        ws2.append([status, count, snapshot.revenue_by_status.get(status, 0)])
    _finish(ws2, money_columns=(2,))

    # =========================
    # Sheet 3: Revenue by day
    # =========================
    ws3 = _sheet(wb, "Revenue", ["Day", "Orders", "Revenue"])
    for day in snapshot.orders_over_time:
        ws3.append([day.day, day.count, day.revenue])
    _finish(ws3, money_columns=(2,))

    if snapshot.orders_over_time:
        chart = BarChart()
        chart.title = "Revenue Trend"
        last_row = len(snapshot.orders_over_time) + 1
        chart.add_data(Reference(ws3, min_col=3, min_row=1, max_row=last_row), titles_from_data=True)
        chart.set_categories(Reference(ws3, min_col=1, min_row=2, max_row=last_row))
        ws3.add_chart(chart, "E3")

    # =========================
    # Sheet 4: Top products
    # =========================
    ws4 = _sheet(wb, "Top Products", ["Product", "Units Sold", "Revenue", "Order Lines"])
    for product in snapshot.top_products:
        ws4.append([product.name, product.total_quantity, product.total_revenue, product.order_count])
    _finish(ws4, money_columns=(2,))

    buffer = io.BytesIO()
    wb.save(buffer)
    buffer.seek(0)
    return buffer
