"""
Auth flows - OTP signup, login, refresh token rotation, password reset.
"""

from bookkeeping.auth.result import FlowErrorKind, FlowResult

__all__ = ["FlowErrorKind", "FlowResult"]
