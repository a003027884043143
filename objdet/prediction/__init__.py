"""
Prediction providers.

Provides forecasts of where previously seen objects are in the current frame.

To add a new provider:
1. Create a new file in this directory
2. Implement a class inheriting from BasePredictionProvider
3. Register it in PROVIDERS dict below
"""
from .base import BasePredictionProvider, ANY, filter_predictions
from .static import StaticPredictionProvider
from .last_seen import LastSeenPredictionProvider
from .http import HttpPredictionProvider

# Registry of available providers
PROVIDERS = {
    "static": StaticPredictionProvider,
    "last_seen": LastSeenPredictionProvider,
    "http": HttpPredictionProvider,
}


def get_provider(name: str, **kwargs) -> BasePredictionProvider:
    """Get a prediction provider instance by name.

    Raises:
        ValueError: If provider name is not registered
    """
    if name not in PROVIDERS:
        available = ", ".join(PROVIDERS.keys())
        raise ValueError(f"Unknown prediction provider '{name}'. Available: {available}")

    return PROVIDERS[name](**kwargs)


__all__ = [
    'BasePredictionProvider',
    'StaticPredictionProvider',
    'LastSeenPredictionProvider',
    'HttpPredictionProvider',
    'filter_predictions',
    'get_provider',
    'ANY',
]
