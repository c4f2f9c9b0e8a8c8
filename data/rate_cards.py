# Default contracted rate cards, one entry per provider band. A JSON file with
# the same shape can replace these through RATE_CARD_PATH.

SLAB_WEIGHTS = [0.5, 1, 2, 5, 10]

ZONES = ["SameCity", "SameState", "MetroToMetro", "RestOfIndia", "NorthEastJK"]


def _slabs(weights, zone_rates):
    # zone_rates: zone -> one base rate per slab weight
    return [
        {
            "upper_kg": weight,
            "rates": {zone: rates[index] for zone, rates in zone_rates.items()},
        }
        for index, weight in enumerate(weights)
    ]


rate_cards = [
    {
        "provider_name": "delhivery",
        "band": "surface",
        "service_mode": "Surface",
        "slabs": _slabs(
            SLAB_WEIGHTS,
            {
                "SameCity": [32, 49, 69, 141, 262],
                "SameState": [34, 52, 74, 149, 275],
                "MetroToMetro": [46, 60, 89, 171, 325],
                "RestOfIndia": [49, 64, 99, 193, 369],
                "NorthEastJK": [68, 87, 131, 227, 430],
            },
        ),
        "additional_rates": {
            "SameCity": 49,
            "SameState": 52,
            "MetroToMetro": 60,
            "RestOfIndia": 64,
            "NorthEastJK": 87,
        },
        "additional_unit_kg": 0.5,
        "cod_charge": 35,
        "cod_percent": 1.75,
        "cod_mode": "additive",
        "eligible_weight": {"min_kg": 0, "max_kg": None},
        "delivery_days": {
            "SameCity": 2,
            "SameState": 3,
            "MetroToMetro": 4,
            "RestOfIndia": 5,
            "NorthEastJK": 8,
        },
    },
    {
        "provider_name": "xpressbees",
        "band": "air",
        "service_mode": "Air",
        "slabs": _slabs(
            SLAB_WEIGHTS,
            {
                "SameCity": [27, 40, 64, 98, 149],
                "SameState": [27, 40, 64, 98, 149],
                "MetroToMetro": [37, 58, 69, 110, 161],
                "RestOfIndia": [51, 58, 76, 123, 174],
                "NorthEastJK": [55, 69, 89, 149, 238],
            },
        ),
        "additional_rates": {
            "SameCity": 52,
            "SameState": 52,
            "MetroToMetro": 20,
            "RestOfIndia": 22,
            "NorthEastJK": 22,
        },
        "cod_charge": 27,
        "cod_percent": 1.18,
        "cod_mode": "greater_of",
        "delivery_days": {
            "SameCity": 1,
            "SameState": 2,
            "MetroToMetro": 2,
            "RestOfIndia": 3,
            "NorthEastJK": 5,
        },
    },
    {
        "provider_name": "bluedart",
        "band": "air",
        "service_mode": "Air",
        "slabs": _slabs(
            SLAB_WEIGHTS,
            {
                "SameCity": [37, 45, 48, 49, 64],
                "SameState": [45, 52, 60, 64, 87],
                "MetroToMetro": [48, 60, 89, 193, 227],
                "RestOfIndia": [49, 64, 99, 193, 369],
                "NorthEastJK": [64, 87, 131, 227, 430],
            },
        ),
        "additional_rates": {
            "SameCity": 62,
            "SameState": 86,
            "MetroToMetro": 87,
            "RestOfIndia": 64,
            "NorthEastJK": 87,
        },
        "cod_charge": 35,
        "cod_percent": 1.5,
        "delivery_days": {
            "SameCity": 1,
            "SameState": 2,
            "MetroToMetro": 2,
            "RestOfIndia": 3,
            "NorthEastJK": 5,
        },
    },
    {
        # standard service: 45 for the first 500 g, 8 per further 500 g, scaled
        # per zone; ecom bills a 15% fuel surcharge on top of freight and COD
        "provider_name": "ecom-express",
        "band": "standard",
        "service_mode": "Surface",
        "slabs": _slabs(
            [0.5],
            {
                "SameCity": [45],
                "SameState": [54],
                "MetroToMetro": [45],
                "RestOfIndia": [68],
                "NorthEastJK": [81],
            },
        ),
        "additional_rates": {
            "SameCity": 8,
            "SameState": 10,
            "MetroToMetro": 8,
            "RestOfIndia": 12,
            "NorthEastJK": 14,
        },
        "additional_unit_kg": 0.5,
        "cod_charge": 25,
        "cod_percent": 0,
        "fuel_surcharge_percent": 15,
        "min_billable_kg": 0.5,
        "delivery_days": {
            "SameCity": 2,
            "SameState": 3,
            "MetroToMetro": 4,
            "RestOfIndia": 6,
            "NorthEastJK": 8,
        },
    },
]
