"""
extraction/sectors.py

Sector catalogue and the file-name based sector classifier.

The order of ``SECTORS`` is part of the classifier contract: a file name that
matches patterns of several sectors resolves to the first one listed here.
"""

from __future__ import annotations

from app.domain.agriculture import Sector

SECTORS: tuple[Sector, ...] = (
    Sector(
        key="crops_production",
        name="Crop Production",
        icon="🌾",
        color="#4CAF50",
        region_label="Crop Production",
        patterns=("crops", "production", "yield", "harvest", "crop_production"),
        commodities=("Wheat", "Rice", "Maize", "Soybeans", "Barley"),
    ),
    Sector(
        key="trade",
        name="Agricultural Trade",
        icon="🚢",
        color="#2196F3",
        region_label="Trade Hub",
        patterns=("trade", "import", "export", "commoditybalances", "trade_crops"),
        commodities=("Export Grains", "Processed Foods", "Feed Crops"),
    ),
    Sector(
        key="food_supply",
        name="Food Supply Systems",
        icon="🍽️",
        color="#FF9800",
        region_label="Food Supply",
        patterns=("foodsupply", "food_supply", "supply"),
        commodities=("Fresh Produce", "Processed Foods", "Dairy Products"),
    ),
    Sector(
        key="land_use",
        name="Agricultural Land Use",
        icon="🗺️",
        color="#8BC34A",
        region_label="Agricultural Land",
        patterns=("land", "area", "cultivated", "land_data"),
        commodities=("Agricultural Zones", "Conservation Areas", "Urban Agriculture"),
    ),
    Sector(
        key="forestry",
        name="Forestry & Agroforestry",
        icon="🌲",
        color="#4CAF50",
        region_label="Forest Zone",
        patterns=("forest", "forestry", "wood", "forest_data"),
        commodities=("Timber", "Pulp", "Agroforestry Products"),
    ),
    Sector(
        key="fertilizers",
        name="Fertilizer Production & Use",
        icon="🧪",
        color="#9C27B0",
        region_label="Fertilizer Production",
        patterns=("fertilizer", "nutrient", "fertilizers_data"),
        commodities=("Nitrogen", "Phosphorus", "Potassium", "Organic Fertilizers"),
    ),
    Sector(
        key="emissions",
        name="Agricultural Emissions",
        icon="🌍",
        color="#795548",
        region_label="Emissions Zone",
        patterns=("emission", "emissions", "manure", "greenhouse"),
        commodities=("CO2 Emissions", "Methane", "Nitrous Oxide"),
    ),
    Sector(
        key="livestock",
        name="Livestock Production",
        icon="🐄",
        color="#8D6E63",
        region_label="Livestock Region",
        patterns=("livestock", "cattle", "poultry", "dairy"),
        commodities=("Cattle", "Dairy", "Poultry", "Sheep"),
    ),
    Sector(
        key="production_indices",
        name="Production Indices",
        icon="📊",
        color="#607D8B",
        region_label="Production Index Zone",
        patterns=("indices", "index", "production_indices"),
        commodities=("Productivity Index", "Growth Rates", "Efficiency Metrics"),
    ),
)

GENERAL_SECTOR = Sector(
    key="general",
    name="General Agriculture",
    icon="🌱",
    color="#4CAF50",
    region_label="Agriculture Zone",
    commodities=("General Agricultural Products",),
)

_SECTORS_BY_KEY: dict[str, Sector] = {
    sector.key: sector for sector in (*SECTORS, GENERAL_SECTOR)
}


def classify_sector(file_name: str) -> Sector:
    """
    Return the sector of the first pattern list with a substring hit in
    *file_name*, or the general sector when nothing matches.
    """

    lowered = file_name.lower()
    for sector in SECTORS:
        if any(pattern in lowered for pattern in sector.patterns):
            return sector
    return GENERAL_SECTOR


def get_sector(key: str) -> Sector | None:
    return _SECTORS_BY_KEY.get(key.strip().lower())


def all_sectors() -> tuple[Sector, ...]:
    """Every sector in classifier order, general last."""
    return (*SECTORS, GENERAL_SECTOR)
