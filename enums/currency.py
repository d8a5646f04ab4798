from enum import Enum


class Currency(str, Enum):
    NOK = "NOK"

    def get_minor_unit_factor(self) -> int:
        """Number of minor units (øre) per major unit."""
        return 100

    @property
    def stripe_code(self) -> str:
        return self.value.lower()
