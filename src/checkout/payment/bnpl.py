"""Buy-now-pay-later providers and the installment plans they offer.

The set of providers is closed; supporting a new one means adding a member
here with its installment count.
"""

from enum import Enum

from checkout.errors import ProviderNotSelected


class BnplProvider(Enum):
    SIMPL = "Simpl"
    LAZYPAY = "LazyPay"
    ZESTMONEY = "ZestMoney"

    @property
    def installments(self) -> int:
        return _INSTALLMENTS[self]


_INSTALLMENTS = {
    BnplProvider.SIMPL: 3,
    BnplProvider.LAZYPAY: 3,
    BnplProvider.ZESTMONEY: 6,
}


def select_provider(name) -> BnplProvider:
    """Resolve a provider name, raising ProviderNotSelected if it is missing or unknown."""
    if not name:
        raise ProviderNotSelected({"bnpl_provider": ["A BNPL provider must be selected"]})
    try:
        return BnplProvider(name)
    except ValueError:
        choices = ", ".join(p.value for p in BnplProvider)
        raise ProviderNotSelected(
            {"bnpl_provider": [f"Unknown BNPL provider '{name}'; choose one of {choices}"]}
        ) from None


def installment_amount(provider: BnplProvider, total: float) -> float:
    return round(total / provider.installments, 2)
