"""
Receipt building and rendering from a snapshot of the valid view.
"""
from html import escape

from smart_checkout.shared.models import Product, Receipt, ReceiptLine


def build_receipt(view: list[Product], currency: str = "₹") -> Receipt:
    lines = [ReceiptLine(name=p.name, weight=p.weight, price=p.price) for p in view]
    total = round(sum(line.price for line in lines), 2)
    return Receipt(lines=lines, total=total, currency=currency)


def render_receipt_html(receipt: Receipt) -> str:
    cur = escape(receipt.currency)
    rows = "".join(
        f"""
        <tr>
            <td>{escape(line.name)}</td>
            <td>{line.weight:g}g</td>
            <td>{cur}{line.price:.2f}</td>
        </tr>"""
        for line in receipt.lines
    )

    return f"""
        <h2>Thank you for your purchase! Here are your details:</h2>
        <table border="1" cellpadding="10" cellspacing="0" style="border-collapse: collapse; width: 100%; text-align: left;">
            <thead>
                <tr>
                    <th>Product Name</th>
                    <th>Weight (g)</th>
                    <th>Price ({cur})</th>
                </tr>
            </thead>
            <tbody>{rows}
            </tbody>
        </table>
        <h3>Total: {cur}{receipt.total:.2f}</h3>
    """
