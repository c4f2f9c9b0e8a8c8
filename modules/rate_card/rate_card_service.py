import json
import math
from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType
from typing import Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError as SchemaValidationError

from logger import logger
from settings import RATE_CARD_PATH

# schema
from schema.base import PaymentMode, ServiceMode
from modules.rate_card.rate_card_schema import CodMode, RateCard
from modules.rates.rates_schema import QuoteSource, RateBreakdown, RateQuote
from modules.zones.zone_resolver import Zone, ZoneTable, resolve_zone, DEFAULT_ZONE_TABLE

# utils
from utils.exceptions import RateNotFoundError, ValidationError
from utils.weight_calc import chargeable_weight as compute_chargeable_weight
from utils.weight_calc import round_up_to_unit

HUNDRED = Decimal("100")
PAISE = Decimal("0.01")


def _decimal(value) -> Decimal:
    return Decimal(str(value))


def _money(value: Decimal) -> float:
    return float(value.quantize(PAISE, rounding=ROUND_HALF_UP))


class RateCardService:
    @staticmethod
    def quote(
        rate_card: RateCard,
        zone: Zone,
        chargeable_weight: float,
        payment_mode: PaymentMode = PaymentMode.PREPAID,
        cod_amount: float = 0.0,
    ) -> RateQuote:
        """
        Price a shipment against one rate card.

        The smallest slab whose threshold covers the weight gives the base
        rate. Past the top slab the top rate applies and the excess is billed
        at the zone's additional rate, per started additional unit. COD,
        fuel surcharge and tax are then layered on the running subtotal and
        the total is rounded half-up to whole rupees.
        """
        if chargeable_weight is None or chargeable_weight <= 0:
            raise ValidationError("Chargeable weight must be greater than 0")

        weight = _decimal(chargeable_weight)

        slab = next(
            (slab for slab in rate_card.slabs if _decimal(slab.upper_kg) >= weight),
            None,
        )
        additional_charge = Decimal("0")

        if slab is None:
            slab = rate_card.top_slab

            if zone not in rate_card.additional_rates:
                raise RateNotFoundError(
                    "No additional weight rate for zone %s" % zone.value,
                    rate_card.provider_name,
                )

            excess = weight - _decimal(slab.upper_kg)
            units = math.ceil(excess / _decimal(rate_card.additional_unit_kg))
            additional_charge = units * _decimal(rate_card.additional_rates[zone])

        if zone not in slab.rates:
            raise RateNotFoundError(
                "No rate for zone %s in band %s" % (zone.value, rate_card.band),
                rate_card.provider_name,
            )

        base_rate = _decimal(slab.rates[zone])
        freight = base_rate + additional_charge

        cod_charge = Decimal("0")
        if payment_mode == PaymentMode.COD:
            cod_percent = _decimal(rate_card.cod_percent) / HUNDRED
            if rate_card.cod_mode == CodMode.GREATER_OF:
                cod_charge = max(
                    _decimal(rate_card.cod_charge), cod_percent * _decimal(cod_amount or 0)
                )
            else:
                cod_charge = _decimal(rate_card.cod_charge) + cod_percent * freight

        subtotal = freight + cod_charge
        fuel_surcharge = subtotal * _decimal(rate_card.fuel_surcharge_percent) / HUNDRED
        tax = (subtotal + fuel_surcharge) * _decimal(rate_card.tax_percent) / HUNDRED

        total = (subtotal + fuel_surcharge + tax).quantize(Decimal("1"), rounding=ROUND_HALF_UP)

        return RateQuote(
            provider_name=rate_card.provider_name,
            service_mode=rate_card.service_mode,
            breakdown=RateBreakdown(
                base_rate=_money(base_rate),
                additional_weight_charge=_money(additional_charge),
                cod_charge=_money(cod_charge),
                fuel_surcharge=_money(fuel_surcharge),
                tax=_money(tax),
                total=float(total),
            ),
            chargeable_weight=float(weight),
            zone=zone,
            estimated_delivery_days=rate_card.delivery_days.get(zone),
            source=QuoteSource.RATE_CARD,
            band=rate_card.band,
        )

    @staticmethod
    def quote_shipment(
        registry: "RateCardRegistry",
        provider_name: str,
        shipment_request,
        zone_table: ZoneTable = DEFAULT_ZONE_TABLE,
    ) -> RateQuote:
        """
        Resolve zone and chargeable weight for a shipment, pick the provider's
        band and price it.
        """
        zone = resolve_zone(
            shipment_request.origin_pincode,
            shipment_request.destination_pincode,
            zone_table,
        )

        raw_weight = compute_chargeable_weight(
            shipment_request.actual_weight_kg, shipment_request.dimensions
        )
        rate_card = registry.select(
            provider_name, raw_weight, shipment_request.service_mode
        )

        weight = compute_chargeable_weight(
            shipment_request.actual_weight_kg,
            shipment_request.dimensions,
            divisor=rate_card.volumetric_divisor,
        )
        weight = max(weight, rate_card.min_billable_kg)
        if rate_card.billable_unit_kg:
            weight = round_up_to_unit(weight, rate_card.billable_unit_kg)

        return RateCardService.quote(
            rate_card,
            zone,
            weight,
            shipment_request.payment_mode,
            shipment_request.cod_amount,
        )


def load_rate_cards(path: Optional[str] = None) -> List[RateCard]:
    """
    Rate cards from a JSON file (a list of card objects) when a path is given
    or RATE_CARD_PATH is set, otherwise the bundled defaults.
    """
    path = path if path is not None else RATE_CARD_PATH

    if path:
        with open(path) as rate_card_file:
            raw_cards = json.load(rate_card_file)
        source = path
    else:
        from data.rate_cards import rate_cards as raw_cards

        source = "data.rate_cards"

    try:
        cards = [RateCard.model_validate(raw_card) for raw_card in raw_cards]
    except SchemaValidationError as e:
        raise ValidationError("Invalid rate card in %s: %s" % (source, e))

    logger.info(msg="Loaded %d rate cards from %s" % (len(cards), source))
    return cards


class RateCardRegistry:
    """
    Read-only rate cards grouped by provider. reload() builds a complete new
    mapping and swaps it in with a single assignment, so readers see either
    the old cards or the new ones, never a mix.
    """

    def __init__(self, loader: Callable[[], List[RateCard]] = load_rate_cards):
        self._loader = loader
        self._cards: MappingProxyType = MappingProxyType({})
        self.reload()

    def reload(self) -> int:
        cards = self._loader()

        grouped: Dict[str, List[RateCard]] = {}
        for card in cards:
            grouped.setdefault(card.provider_name, []).append(card)

        frozen: Dict[str, Tuple[RateCard, ...]] = {
            provider: tuple(sorted(provider_cards, key=lambda c: c.eligible_weight.min_kg))
            for provider, provider_cards in grouped.items()
        }
        self._cards = MappingProxyType(frozen)

        logger.info(msg="Rate card registry holds %d providers" % len(frozen))
        return len(cards)

    def providers(self) -> List[str]:
        return sorted(self._cards)

    def cards_for(self, provider_name: str) -> Tuple[RateCard, ...]:
        return self._cards.get(provider_name, ())

    def all_cards(self) -> List[RateCard]:
        cards = self._cards
        return [card for provider in sorted(cards) for card in cards[provider]]

    def select(
        self,
        provider_name: str,
        chargeable_weight: float,
        service_mode: Optional[ServiceMode] = None,
    ) -> RateCard:
        candidates = self.cards_for(provider_name)
        if not candidates:
            raise RateNotFoundError("No rate card loaded", provider_name)

        if service_mode is not None:
            preferred = [c for c in candidates if c.service_mode == service_mode]
            # a mode preference narrows the choice only when the provider offers it
            candidates = preferred or candidates

        for card in candidates:
            if card.eligible_weight.contains(chargeable_weight):
                return card

        raise RateNotFoundError(
            "No rate band for %.3f kg" % chargeable_weight, provider_name
        )
