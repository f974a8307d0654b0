from cardapio.models.category import Category
from cardapio.models.product import Product
from cardapio.models.option_group import OptionGroup
from cardapio.models.option import Option
from cardapio.models.product_option_group import ProductOptionGroup
from cardapio.models.order import Order
from cardapio.models.order_item import OrderItem
from cardapio.models.order_item_option import OrderItemOption
from cardapio.models.coupon import Coupon
from cardapio.models.admin_user import AdminUser
