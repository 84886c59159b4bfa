"""Bitcoin networks an invoice can be valid in, as registered in SLIP-0173."""

from __future__ import annotations

from enum import Enum

from ln_invoice.exceptions import UnknownNetworkError


class Network(str, Enum):
    MAIN = "bc"
    TEST = "tb"

    @classmethod
    def parse(cls, code: str) -> Network:
        """Resolve a SLIP-0173 human-readable prefix to a network.

        Raises:
            UnknownNetworkError: If the code is not registered.
        """
        for network in cls:
            if network.value == code:
                return network
        raise UnknownNetworkError(code)
