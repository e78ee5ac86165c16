from broker_connector_base import BrokerAuthError


class SchwabAuthError(BrokerAuthError):
    """Raised when Schwab rejects the access token of a request"""
    pass
