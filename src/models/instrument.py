"""Monitored instruments (OTC currency pairs)."""

from __future__ import annotations

from enum import Enum


class Instrument(Enum):
    """
    Currency pairs the monitor can watch.

    Value is the display name; base/quote codes are used by the live
    quote adapter.
    """

    EURUSD_OTC = "EUR/USD (OTC)"
    GBPUSD_OTC = "GBP/USD (OTC)"
    USDJPY_OTC = "USD/JPY (OTC)"
    AUDUSD_OTC = "AUD/USD (OTC)"
    USDCAD_OTC = "USD/CAD (OTC)"
    USDCHF_OTC = "USD/CHF (OTC)"
    NZDUSD_OTC = "NZD/USD (OTC)"
    EURJPY_OTC = "EUR/JPY (OTC)"

    @property
    def display_name(self) -> str:
        return self.value

    @property
    def base_currency(self) -> str:
        return self.name[:3]

    @property
    def quote_currency(self) -> str:
        return self.name[3:6]

    @classmethod
    def parse(cls, name: str) -> "Instrument":
        """
        Look up an instrument by enum name, case-insensitively.

        Accepts "EURUSD_OTC", "eurusd_otc" and the short form "EURUSD".

        Raises:
            ValueError: If no instrument matches.
        """
        key = name.strip().upper().replace("/", "")
        if not key.endswith("_OTC"):
            key = f"{key}_OTC"
        try:
            return cls[key]
        except KeyError:
            valid = ", ".join(i.name for i in cls)
            raise ValueError(f"Unknown instrument '{name}'. Valid: {valid}") from None

    def __str__(self) -> str:
        return self.name
