from enum import Enum


class PaymentMethod(str, Enum):
    CARD = "card"
    VIPPS = "vipps"
    KLARNA = "klarna"
