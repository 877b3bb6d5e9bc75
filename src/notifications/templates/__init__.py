from notifications.templates.order_confirmation import OrderConfirmationTemplate

__all__ = ["OrderConfirmationTemplate"]
