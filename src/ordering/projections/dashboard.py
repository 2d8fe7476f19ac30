"""Admin dashboard figures."""

from dataclasses import asdict, dataclass

from protean.utils.globals import current_domain

from ordering.checkout.reconciliation import open_cases
from ordering.projections.queries import all_orders
from ordering.projections.read_model import OrderView
from ordering.stock.product import Product


@dataclass(frozen=True)
class DashboardStats:
    total_products: int
    total_orders: int
    total_revenue: float
    pending_orders: int
    low_stock_products: int
    open_reconciliation_cases: int
    recent_orders: list[OrderView]

    def to_dict(self) -> dict:
        return asdict(self)


def dashboard_stats(recent=5) -> DashboardStats:
    orders = all_orders()
    products = current_domain.repository_for(Product)._dao.query.all().items

    # Cancelled orders are refunded, so they do not count as revenue
    revenue = sum(order.total_amount for order in orders if order.status != "cancelled")

    return DashboardStats(
        total_products=len(products),
        total_orders=len(orders),
        total_revenue=round(revenue, 2),
        pending_orders=sum(1 for order in orders if order.status == "pending"),
        low_stock_products=sum(1 for product in products if product.is_low_on_stock),
        open_reconciliation_cases=len(open_cases()),
        recent_orders=orders[:recent],
    )
