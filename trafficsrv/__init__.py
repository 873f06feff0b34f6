"""
trafficsrv — synthetic HTTP traffic generator
---------------------------------------------
GET serves random bytes, PUT discards the body.
Both can be rate limited and delayed via query parameters.
"""

__version__ = "0.1.0"
