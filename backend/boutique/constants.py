# Overview: Enumerations shared by validation, services and models.

STORE_TYPE_ONLINE = "online"
STORE_TYPE_BOUTIQUE = "boutique"
STORE_TYPES = (STORE_TYPE_ONLINE, STORE_TYPE_BOUTIQUE)

CHANNEL_IN_STORE = "in-store"
CHANNEL_ONLINE = "online"
SALES_CHANNELS = (CHANNEL_IN_STORE, CHANNEL_ONLINE)
# Each channel sells from exactly one store partition.
CHANNEL_FOR_STORE_TYPE = {
    STORE_TYPE_ONLINE: CHANNEL_ONLINE,
    STORE_TYPE_BOUTIQUE: CHANNEL_IN_STORE,
}

PAYMENT_CASH = "cash"
PAYMENT_VISA = "visa"
PAYMENT_BANK_TRANSFER = "bank-transfer"
PAYMENT_CASH_ON_DELIVERY = "cash-on-delivery"

ONLINE_PAYMENT_METHODS = (PAYMENT_CASH_ON_DELIVERY, PAYMENT_BANK_TRANSFER)
BOUTIQUE_PAYMENT_METHODS = (PAYMENT_CASH, PAYMENT_VISA)
PAYMENT_METHODS = (PAYMENT_CASH, PAYMENT_VISA, PAYMENT_BANK_TRANSFER, PAYMENT_CASH_ON_DELIVERY)

ORDER_STATUS_PENDING_DELIVERY = "pending-delivery"
ORDER_STATUS_DELIVERED = "delivered"
ORDER_STATUS_CANCELLED = "cancelled"
ORDER_STATUSES = (ORDER_STATUS_PENDING_DELIVERY, ORDER_STATUS_DELIVERED, ORDER_STATUS_CANCELLED)

RETURN_TYPE_REFUND = "refund"
RETURN_TYPE_EXCHANGE = "exchange"
RETURN_TYPES = (RETURN_TYPE_REFUND, RETURN_TYPE_EXCHANGE)

EXCHANGE_PRODUCT_TO_PRODUCT = "product-to-product"
EXCHANGE_COLOR_CHANGE = "color-change"
EXCHANGE_SIZE_CHANGE = "size-change"
EXCHANGE_TYPES = (EXCHANGE_PRODUCT_TO_PRODUCT, EXCHANGE_COLOR_CHANGE, EXCHANGE_SIZE_CHANGE)

PRODUCT_TYPES = ("dress", "evening-wear", "hijab", "abaya", "accessories")

STOCK_IN_STOCK = "in-stock"
STOCK_LOW = "low-stock"
STOCK_OUT = "out-of-stock"
# Fixed business rule: fewer than this many units across the partition is "low".
LOW_STOCK_THRESHOLD = 10
