"""Static catalog reference data.

Prices are list prices in USD. The catalog-management process owns this data;
the engine only reads it.
"""

from __future__ import annotations

from typing import Any

OPTION_GROUPS: list[dict[str, Any]] = [
    {
        "subject": "Construction",
        "options": [
            {"id": "r-33-roof-insulation", "name": "R-33 IPO R22 Roof Insulation", "price": "195.00"},
            {"id": "r-22-floor-insulation", "name": "R-22 Floor Insulation", "price": "225.00"},
            {"id": "r-13-wall-insulation", "name": "R-13 Wall Insulation", "price": "550.00"},
            {"id": "16-on-center-rafter-trusses", "name": '16" on Center Rafter Trusses', "price": "1125.00"},
            {"id": "omit-standard-porch-per-lf", "name": "Omit Standard Porch per LF", "price": "-13.00"},
            {"id": "single-loft-12-wide", "name": "Single Loft 12 Wide", "price": "5500.00"},
            {"id": "add-axle", "name": "Add Axle", "price": "450.00"},
            {"id": "tray-ceiling-6", "name": "Tray Ceiling 6'", "price": "595.00"},
            {
                "id": "anniversary-energy-package",
                "name": "Anniversary Energy Package",
                "price": "1500.00",
                "description": (
                    "Radiant roof decking, R-33 roof and R-22 floor insulation, "
                    "R-13 wall insulation"
                ),
                "is_package": True,
            },
        ],
    },
    {
        "subject": "Flooring",
        "options": [
            {"id": "omit-all-floor-covering-per-lf", "name": "Omit all Floor Covering (per LF)", "price": "-8.90"},
            {"id": "coretec-plank-ipo-carpet", "name": "Coretec Plank IPO Carpet (per SF)", "price": "9.00"},
            {"id": "lvt-plank-ipo-carpet", "name": "LVT Plank IPO Carpet (per SF)", "price": "4.00"},
        ],
    },
    {
        "subject": "Plumbing",
        "options": [
            {"id": "outside-water-faucet", "name": "Outside water faucet (each)", "price": "60.00"},
            {"id": "tankless-gas-water-heater", "name": "Tankless Gas Water Heater", "price": "1750.00"},
            {"id": "install-1-head-ductless", "name": "Install 1 Head Ductless AC/Heat System", "price": "3270.00"},
            {"id": "30-gal-water-heater", "name": "30 Gal Water Heater IPO 20 Gal", "price": "275.00"},
        ],
    },
    {
        "subject": "Cabinetry",
        "options": [
            {"id": "white-cabinet-doors", "name": "White Cabinet Doors & Wood Stiles", "price": "250.00"},
            {"id": "hickory-wood-cabinets", "name": "Hickory Wood Cabs & Stiles IPO MDF", "price": "1695.00"},
            {"id": "pantry-with-shelves", "name": "Pantry w 3 Shelves", "price": "575.00"},
            {"id": "omit-entertainment-center", "name": "Omit Std Entertainment Center", "price": "-50.00"},
        ],
    },
]

PACKAGES: list[dict[str, Any]] = [
    {
        "key": "comfort-xtreme",
        "name": "Comfort Xtreme",
        "price_delta": "3500.00",
        "description": "HVAC mini-split, insulation upgrades, blackout shades.",
        "items": ["Mini-split HVAC", "Upgraded insulation", "Blackout shades"],
    },
    {
        "key": "chefs-pick",
        "name": "Chef's Pick",
        "price_delta": "5200.00",
        "description": "Solid-surface counters, gas range, deep sink, pull-outs.",
        "items": ["Solid-surface counters", "Gas range", "Deep sink"],
    },
    {
        "key": "cozy-cottage",
        "name": "Cozy Cottage",
        "price_delta": "2800.00",
        "description": "Wood accents, warm lighting, upgraded trim.",
        "items": ["Wood accents", "Warm lighting", "Upgraded trim"],
    },
    {
        "key": "ultra",
        "name": "Ultra",
        "price_delta": "7400.00",
        "description": "Premium finishes across kitchen, bath and exterior.",
        "items": ["Premium finishes", "Exterior lighting", "Tile shower"],
    },
]

_ALL_OPTION_IDS = [option["id"] for group in OPTION_GROUPS for option in group["options"]]

MODELS: list[dict[str, Any]] = [
    {
        "id": "aps-630",
        "name": "The Magnolia",
        "subtitle": "APS-630",
        "description": "1 BR / 1 Bath w/ 6ft Porch",
        "base_price": "71475.00",
        "specs": {
            "length": "30'",
            "width": "8'6\"",
            "height": "13'6\"",
            "weight": "16,000 lbs",
            "bedrooms": 1,
            "bathrooms": 1,
        },
        "features": [
            "6-foot covered porch",
            "Spacious 30-foot design",
            "Full kitchen with appliances",
            "Bathroom with shower",
        ],
        "packages": PACKAGES,
        "option_ids": _ALL_OPTION_IDS,
    },
    {
        "id": "aps-601",
        "name": "The Bluebonnet",
        "subtitle": "APS-601",
        "description": "1 BR / 1 Bath w/ 6ft Porch",
        "base_price": "70415.00",
        "specs": {
            "length": "20'",
            "width": "8'6\"",
            "height": "13'6\"",
            "weight": "12,000 lbs",
            "bedrooms": 1,
            "bathrooms": 1,
        },
        "features": ["6-foot covered porch", "Loft sleeping area", "Storage solutions"],
        "packages": PACKAGES[:3],
        "option_ids": _ALL_OPTION_IDS,
    },
    {
        "id": "aps-520ms",
        "name": "The Nest",
        "subtitle": "APS-520MS",
        "description": "1 BR / 1 Bath w/ Side Porch & Monoslope Roof",
        "base_price": "69780.00",
        "specs": {
            "length": "20'",
            "width": "8'6\"",
            "height": "13'6\"",
            "weight": "12,000 lbs",
            "bedrooms": 1,
            "bathrooms": 1,
        },
        "features": ["Side porch", "Monoslope roof", "Full kitchen with appliances"],
        "packages": PACKAGES[1:],
        "option_ids": [option_id for option_id in _ALL_OPTION_IDS if option_id != "single-loft-12-wide"],
    },
    {
        "id": "aps-444",
        "name": "The Juniper",
        "subtitle": "APS-444",
        "description": "Studio w/ Front Porch",
        "base_price": "60000.00",
        "specs": {
            "length": "24'",
            "width": "8'6\"",
            "height": "13'6\"",
            "weight": "11,000 lbs",
            "bedrooms": 0,
            "bathrooms": 1,
        },
        "features": ["Front porch", "Compact kitchen"],
        "packages": PACKAGES[:1],
        "option_ids": _ALL_OPTION_IDS,
    },
]

__all__ = ["MODELS", "OPTION_GROUPS", "PACKAGES"]
