from app.models.user import UserProfile
from app.models.unit import Unit
from app.models.order import Order
from app.models.order_item import OrderItem
from app.models.manual_order_key import ManualOrderKey
from app.models.order_counter import OrderCounter
from app.models.order_event import OrderEvent

# add ALL models here
