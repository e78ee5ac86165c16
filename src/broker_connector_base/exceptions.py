from typing import Optional


class BrokerError(Exception):
    """Base class for all brokerage errors"""
    pass


class ConfigurationError(BrokerError):
    """Raised when required configuration or credentials are missing"""
    pass


class NoCredentialsError(ConfigurationError):
    """Raised when a portfolio is not connected to a brokerage"""

    def __init__(self, portfolio_id: int, message: Optional[str] = None):
        self.portfolio_id = portfolio_id
        super().__init__(message or f"Portfolio {portfolio_id} is not connected to a brokerage")


class BrokerConnectionError(BrokerError):
    """Raised when broker connection fails"""
    pass


class BrokerAPIError(BrokerError):
    """Raised when broker API returns an error"""

    def __init__(self, message: str, status: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.body = body


class BrokerAuthError(BrokerAPIError):
    """Raised when the broker rejects the credentials of a request"""

    TOKEN_EXPIRED = "TOKEN_EXPIRED"

    def __init__(self, message: str, code: str = TOKEN_EXPIRED, status: Optional[int] = 401,
                 body: Optional[str] = None):
        super().__init__(message, status=status, body=body)
        self.code = code


class RefreshTokenExpiredError(BrokerAuthError):
    """Raised when the refresh token itself is rejected; requires a new OAuth login"""

    def __init__(self, message: str = "Refresh token expired. Please re-authenticate through Schwab's OAuth flow.",
                 status: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message, code="REFRESH_TOKEN_EXPIRED", status=status, body=body)


class OrderExecutionError(BrokerError):
    """Raised when order execution fails"""
    pass
