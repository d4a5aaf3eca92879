from bookkeeping.auth.services.token_issuer import TokenIssuer

__all__ = ["TokenIssuer"]
