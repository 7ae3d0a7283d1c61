from .users import User, ROLE_CUSTOMER, ROLE_CASHIER, ROLE_ADMIN, VALID_ROLES, STAFF_ROLES
from .products import Product
from .orders import Order, OrderItem

__all__ = [
    'User', 'Product', 'Order', 'OrderItem',
    'ROLE_CUSTOMER', 'ROLE_CASHIER', 'ROLE_ADMIN', 'VALID_ROLES', 'STAFF_ROLES',
]
