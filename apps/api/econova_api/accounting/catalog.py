"""Waste categories and the default material catalog."""

RECYCLING = "recycling"
COMPOST = "compost"
REUSE = "reuse"
LANDFILL = "landfill"

CATEGORIES = (RECYCLING, COMPOST, REUSE, LANDFILL)

# Categories counted as diverted from landfill.
DIVERTED_CATEGORIES = (RECYCLING, COMPOST, REUSE)

DEFAULT_MATERIALS = {
    RECYCLING: [
        "Papel Mixto",
        "Papel de oficina",
        "Revistas",
        "Periódico",
        "Cartón",
        "PET",
        "Plástico Duro",
        "HDPE",
        "Tin Can",
        "Aluminio",
        "Vidrio",
        "Fierro",
        "Residuo electrónico",
    ],
    COMPOST: [
        "Poda San Sebastián",
        "Jardinería",
        "Residuos de cocina",
        "Restos orgánicos",
    ],
    REUSE: [
        "Vidrio donación",
        "Mobiliario",
        "Equipos reutilizables",
    ],
    LANDFILL: [
        "Orgánico",
        "Inorgánico",
    ],
}

MONTH_LABELS = ["Ene", "Feb", "Mar", "Abr", "May", "Jun", "Jul", "Ago", "Sep", "Oct", "Nov", "Dic"]


def month_label(year: int, month: int) -> str:
    """Short Spanish label used by the certification reports, e.g. ``Ene 2025``."""
    return f"{MONTH_LABELS[month - 1]} {year}"
