"""
                Quick Service Automation

Restaurant ordering backend: authentication, profile, menu, orders
and table reservations over a small REST API, plus a Python client
package holding the storefront's session and cart state.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
