from orderdesk.models.customer import Customer
from orderdesk.models.deliveryman import Deliveryman
from orderdesk.models.item import Item
from orderdesk.models.order import Order
from orderdesk.models.order_item import order_item
