# spincart/domain/enums.py
import enum


class SpinType(str, enum.Enum):
    DISCOUNT = "DISCOUNT"
    FREE_DELIVERY = "FREE_DELIVERY"
    CASHBACK = "CASHBACK"
    GIFT = "GIFT"
    MESSAGE = "MESSAGE"


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class OrderType(str, enum.Enum):
    STANDARD = "STANDARD"
    THREE_HOUR_DELIVERY = "THREE_HOUR_DELIVERY"


class PaymentMethod(str, enum.Enum):
    COD = "COD"
    ESEWA = "ESEWA"


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"


class UserRole(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


# typy nagrod, ktorych value musi byc liczba
NUMERIC_SPIN_TYPES = frozenset({SpinType.DISCOUNT, SpinType.CASHBACK})
