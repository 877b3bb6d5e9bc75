"""Order confirmation template, sent once an order has been placed."""


class OrderConfirmationTemplate:
    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        total = context.get("total", "0.00")
        currency = context.get("currency", "USD")
        lines = "\n".join(
            f"  {item['quantity']} x {item['name']} @ {item['price']}" for item in context.get("items", [])
        )
        return {
            "subject": f"Order #{order_id} Confirmed",
            "body": (
                f"Your order #{order_id} has been placed.\n\n"
                f"{lines}\n\n"
                f"Order Total: {currency} {total}\n\n"
                "We'll let you know when your tea is on its way.\n\n"
                "Thank you for shopping with us!"
            ),
        }
