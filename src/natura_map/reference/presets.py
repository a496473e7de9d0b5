"""Quick-select search presets.

Pre-configured queries offered as one-click searches, and the set the
prefetch flow warms the cache with.
"""

from __future__ import annotations

from dataclasses import dataclass

from natura_map.schemas import Query


@dataclass(frozen=True)
class Preset:
    """A labelled query with human-readable taxon and place names."""

    label: str
    query: Query
    place_name: str = ""


def _research(taxon_name: str, taxon_id: int, place_id: int | None = None) -> Query:
    return Query(
        taxon_id=taxon_id, taxon_name=taxon_name, place_id=place_id, quality_grade="research"
    )


PRESETS: tuple[Preset, ...] = (
    Preset("Fungi of California", _research("Fungi", 47170, 14), "California"),
    Preset("Birds of Costa Rica", _research("Aves", 3, 6924), "Costa Rica"),
    Preset("Reptiles of Australia", _research("Reptilia", 26036, 6744), "Australia"),
    Preset("Mushrooms of NE US", _research("Agaricomycetes", 47169, 52295), "New England"),
    Preset("Orchids Worldwide", _research("Orchidaceae", 47217)),
    Preset(
        "Wildflowers of Pacific NW",
        _research("Angiospermae", 47125, 52771),
        "Pacific Northwest",
    ),
    Preset("Mammals of East Africa", _research("Mammalia", 40151, 6878), "Kenya"),
    Preset("Butterflies of Europe", _research("Papilionoidea", 47224, 97391), "Europe"),
    Preset("Marine Life of Hawaii", _research("Animalia", 1, 8), "Hawaii"),
)

DEFAULT_PRESET = "Butterflies of Europe"


def get_preset(label: str) -> Preset:
    """Look up a preset by label (case-insensitive).

    Raises:
        KeyError: No preset has that label.
    """
    wanted = label.strip().casefold()
    for preset in PRESETS:
        if preset.label.casefold() == wanted:
            return preset
    raise KeyError(label)
