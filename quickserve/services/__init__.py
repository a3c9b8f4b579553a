"""
                        Services Module

Business logic behind the API routes.

Services:
    - menu_catalog: default menu seeding and menu queries
    - orders: order-number allocation and order persistence
    - notifications: email/SMS confirmations (Mock or SendGrid/Twilio)
"""
