from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, List

from etto.domain.doctrine import Doctrine
from etto.domain.models import UnitRecord
from etto.domain.presets import preset_affinity
from etto.engine.tags import element_from_tags, expand


@dataclass(frozen=True)
class TaggedUnit:
    """A UnitRecord prepared for one optimizer run (expanded tags + base score)."""
    record: UnitRecord
    tags: FrozenSet[str]
    element: str
    base: float

    @property
    def id(self) -> str:
        return self.record.id


def stat_score(record: UnitRecord, doctrine: Doctrine) -> float:
    sm = doctrine.scoring_model
    st = record.stats
    return (
        st.atk * sm.atk_weight
        + st.spd * sm.spd_weight
        + st.hp * sm.hp_weight
        + (st.atk / max(1.0, st.cost)) * sm.efficiency_atk_per_cost_weight
    )


def unit_base_score(record: UnitRecord, tags: FrozenSet[str], doctrine: Doctrine, preset_key: str = "") -> float:
    """Weighted stat line plus preset affinity * multiplier when a preset is active."""
    score = stat_score(record, doctrine)
    preset = doctrine.preset(preset_key)
    if preset is not None:
        score += preset_affinity(tags, preset) * doctrine.scoring_model.preset_affinity_multiplier
    return float(score)


def tag_units(records: Iterable[UnitRecord], doctrine: Doctrine, preset_key: str = "") -> List[TaggedUnit]:
    out: List[TaggedUnit] = []
    for rec in records:
        tags = expand(rec.raw_tags)
        out.append(TaggedUnit(
            record=rec,
            tags=tags,
            element=element_from_tags(tags, rec.element),
            base=unit_base_score(rec, tags, doctrine, preset_key),
        ))
    return out


def candidate_order_key(unit: TaggedUnit):
    # base desc, id asc
    return (-unit.base, unit.id)
