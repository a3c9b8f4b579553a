def order_payload(**overrides):
    """Two items, subtotal 200, tax 16, total 216."""
    payload = {
        "items": [
            {"name": "Grilled Salmon", "price": 50.0, "quantity": 2, "image": "salmon.jpg"},
            {"name": "Tiramisu", "price": 100.0, "quantity": 1, "image": "tiramisu.jpg"},
        ],
        "paymentMethod": "credit-card",
        "subtotal": 200.0,
        "tax": 16.0,
        "total": 216.0,
    }
    payload.update(overrides)
    return payload
