from bookkeeping.services.aggregator.mx_client import (
    AggregatorClient,
    AggregatorError,
    MxAggregatorClient,
)

__all__ = ["AggregatorClient", "AggregatorError", "MxAggregatorClient"]
