from typing import List, Optional, Tuple

MOTO_BRANDS: List[dict] = [
    {"name": "Aprilia", "logo": "/brands/aprilia.svg"},
    {"name": "Benelli", "logo": "/brands/benelli.svg"},
    {"name": "BMW", "logo": "/brands/bmw.svg"},
    {"name": "CF Moto", "logo": "/brands/cfmoto.svg"},
    {"name": "Ducati", "logo": "/brands/ducati.svg"},
    {"name": "Harley-Davidson", "logo": "/brands/harley-davidson.svg"},
    {"name": "Honda", "logo": "/brands/honda.svg"},
    {"name": "Husqvarna", "logo": "/brands/husqvarna.svg"},
    {"name": "Indian", "logo": "/brands/indian.svg"},
    {"name": "Kawasaki", "logo": "/brands/kawasaki.svg"},
    {"name": "KTM", "logo": "/brands/ktm.svg"},
    {"name": "Moto Guzzi", "logo": "/brands/moto-guzzi.svg"},
    {"name": "MV Agusta", "logo": "/brands/mv-agusta.svg"},
    {"name": "Royal Enfield", "logo": "/brands/royal-enfield.svg"},
    {"name": "Suzuki", "logo": "/brands/suzuki.svg"},
    {"name": "Triumph", "logo": "/brands/triumph.svg"},
    {"name": "Yamaha", "logo": "/brands/yamaha.svg"},
]

# Longest first so "Moto Guzzi" wins over a shorter prefix
_BRANDS_BY_LENGTH = sorted(MOTO_BRANDS, key=lambda b: len(b["name"]), reverse=True)


def parse_bike_model(bike_model: Optional[str]) -> Tuple[str, str]:
    """Split "Ducati Monster 821" into ("Ducati", "Monster 821"); unknown brands give ("", text)"""
    if not bike_model:
        return "", ""
    lowered = bike_model.lower()
    for brand in _BRANDS_BY_LENGTH:
        if lowered.startswith(brand["name"].lower()):
            return brand["name"], bike_model[len(brand["name"]):].strip()
    return "", bike_model


def compose_bike_model(brand: Optional[str], model: Optional[str]) -> Optional[str]:
    parts = [p.strip() for p in (brand, model) if p and p.strip()]
    return " ".join(parts) or None


def get_brand_logo(bike_model: Optional[str]) -> Optional[str]:
    brand, _ = parse_bike_model(bike_model)
    for b in MOTO_BRANDS:
        if b["name"] == brand:
            return b["logo"]
    return None
