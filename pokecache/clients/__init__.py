"""HTTP clients for the upstream catalog."""

from .pokeapi import (
    DecodeError,
    DnsResolutionError,
    FetchError,
    PokeAPIClient,
    TransportError,
)

__all__ = [
    "DecodeError",
    "DnsResolutionError",
    "FetchError",
    "PokeAPIClient",
    "TransportError",
]
