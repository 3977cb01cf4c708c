# app/services/receipt_service.py
from io import BytesIO

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from app.models.order import Order


def render_receipt_pdf(order: Order) -> bytes:
    """Receipt built from the line item snapshots, never from current unit prices."""
    buffer = BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4

    y = height - 72
    c.setFont("Helvetica-Bold", 16)
    c.drawString(72, y, f"Receipt {order.order_code}")

    c.setFont("Helvetica", 10)
    y -= 24
    c.drawString(72, y, f"Customer: {order.user_display_name} ({order.user_email})")
    y -= 14
    c.drawString(72, y, f"Date: {order.created_at:%Y-%m-%d %H:%M} UTC")
    y -= 14
    c.drawString(72, y, f"Status: {order.status}")

    y -= 28
    for item in order.items:
        c.drawString(72, y, f"{item.item_name} ({item.unit_code})")
        c.drawRightString(width - 72, y, f"Rs. {item.price:,.2f}")
        y -= 14
        if y < 72:
            c.showPage()
            c.setFont("Helvetica", 10)
            y = height - 72

    y -= 14
    c.setFont("Helvetica-Bold", 11)
    c.drawString(72, y, "Total")
    c.drawRightString(width - 72, y, f"Rs. {order.total:,.2f}")

    c.save()
    return buffer.getvalue()
