"""Data models for the layered knowledge graph.

Nodes are a common envelope (id, layer, name, size, color, decorative flag)
plus a layer-specific payload. The payload class is selected by ``layer`` so
callers dispatch on the payload type instead of probing for fields such as
``skill_type`` or ``knowledge_type``.

Simulation state (x, y, velocities, pins) never lives on these records; it is
owned by :mod:`layergraph.layout.simulation` and keyed by node id.
"""

from __future__ import annotations

import copy
from collections import Counter
from dataclasses import asdict, dataclass, field, fields
from typing import Any, ClassVar

LAYER_ORIGIN = 0
LAYER_INDUSTRY = 1
LAYER_JOB = 2
LAYER_SKILL = 3
LAYER_KNOWLEDGE = 4
LAYER_RESOURCE = 5

LAYER_NAMES = {
    LAYER_ORIGIN: "origin",
    LAYER_INDUSTRY: "industry",
    LAYER_JOB: "job",
    LAYER_SKILL: "skill",
    LAYER_KNOWLEDGE: "knowledge",
    LAYER_RESOURCE: "resource",
}

DEFAULT_NODE_SIZE = 10
DEFAULT_NODE_COLOR = "#64748b"
DEFAULT_LINK_STRENGTH = 0.5
DEFAULT_RELATIONSHIP_TYPE = "custom"
DEFAULT_EVIDENCE_DETAIL = "用户自定义关系"

# Keys produced by a force simulation host; never part of the semantic record.
RUNTIME_KEYS = frozenset({"x", "y", "vx", "vy", "fx", "fy", "index"})


@dataclass
class LayerPayload:
    """Layer-specific attributes. Subclasses list the fields of one layer."""

    layer: ClassVar[int | None] = None

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LayerPayload":
        return cls(**{k: copy.deepcopy(data[k]) for k in cls.field_names() if k in data})

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class OriginPayload(LayerPayload):
    """The single origin node at the top of the graph."""

    layer: ClassVar[int | None] = LAYER_ORIGIN


@dataclass
class IndustryPayload(LayerPayload):
    layer: ClassVar[int | None] = LAYER_INDUSTRY

    trend_type: str | None = None
    market_size: str | None = None
    impact_analysis: str | None = None
    evidence_source: str | None = None


@dataclass
class JobPayload(LayerPayload):
    layer: ClassVar[int | None] = LAYER_JOB

    department: str | None = None
    salary_range: str | None = None
    experience_requirement: str | None = None
    core_responsibilities: list[str] | None = None
    career_progression: str | list[str] | None = None
    recruitment_evidence: str | None = None


@dataclass
class SkillPayload(LayerPayload):
    layer: ClassVar[int | None] = LAYER_SKILL

    skill_type: str | None = None
    level: str | None = None
    complexity_level: str | None = None
    mastery_levels: list[str] | dict[str, str] | None = None
    assessment_criteria: str | list[str] | None = None
    practical_application: str | None = None
    industry_demand: str | None = None


@dataclass
class KnowledgePayload(LayerPayload):
    layer: ClassVar[int | None] = LAYER_KNOWLEDGE

    knowledge_type: str | None = None
    difficulty_level: str | None = None
    prerequisites: list[str] | None = None
    learning_path: str | list[str] | None = None
    academic_foundation: str | None = None
    application_scenarios: list[str] | None = None
    learning_resources: list[Any] | None = None
    original_location: str | None = None


@dataclass
class ResourcePayload(LayerPayload):
    layer: ClassVar[int | None] = LAYER_RESOURCE

    resource_type: str | None = None
    url: str | None = None


PAYLOAD_CLASSES: dict[int, type[LayerPayload]] = {
    cls.layer: cls
    for cls in (
        OriginPayload,
        IndustryPayload,
        JobPayload,
        SkillPayload,
        KnowledgePayload,
        ResourcePayload,
    )
}


def payload_class_for(layer: int) -> type[LayerPayload]:
    """Payload class for a layer; unknown layers get the empty base payload."""
    return PAYLOAD_CLASSES.get(layer, LayerPayload)


def _coerce_layer(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"invalid layer: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"invalid layer: {value!r}") from None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _endpoint_id(value: Any) -> str:
    # Exports from a d3-style host may carry resolved node objects.
    if isinstance(value, dict):
        value = value.get("id")
    if value is None:
        raise ValueError("link endpoint is missing")
    return str(value)


ENVELOPE_KEYS = frozenset(
    {"id", "layer", "name", "size", "color", "is_decorative", "description", "keywords"}
)


@dataclass
class Node:
    """A graph node: common envelope plus a layer-selected payload."""

    id: str
    layer: int
    name: str = ""
    size: float = DEFAULT_NODE_SIZE
    color: str = DEFAULT_NODE_COLOR
    is_decorative: bool = False
    description: str | None = None
    keywords: list[str] | None = None
    payload: LayerPayload | None = None
    position_hint: tuple[float, float] | None = None  # initial x, y only
    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.payload is None:
            self.payload = payload_class_for(self.layer)()

    @property
    def kind(self) -> str:
        return LAYER_NAMES.get(self.layer, "other")

    @property
    def is_origin(self) -> bool:
        return self.layer == LAYER_ORIGIN

    @property
    def is_interactive(self) -> bool:
        return not self.is_decorative

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Node":
        if not isinstance(data, dict):
            raise ValueError(f"node must be an object, got {type(data).__name__}")
        if data.get("id") in (None, ""):
            raise ValueError("node is missing 'id'")

        layer = _coerce_layer(data.get("layer", LAYER_ORIGIN))
        payload_cls = payload_class_for(layer)
        known = ENVELOPE_KEYS | set(payload_cls.field_names()) | RUNTIME_KEYS

        hint = None
        if _is_number(data.get("x")) and _is_number(data.get("y")):
            hint = (float(data["x"]), float(data["y"]))

        size = data.get("size", DEFAULT_NODE_SIZE)
        keywords = data.get("keywords")
        return cls(
            id=str(data["id"]),
            layer=layer,
            name=data.get("name") if data.get("name") is not None else "",
            size=size if _is_number(size) else DEFAULT_NODE_SIZE,
            color=data.get("color") or DEFAULT_NODE_COLOR,
            is_decorative=bool(data.get("is_decorative", False)),
            description=data.get("description"),
            keywords=list(keywords) if isinstance(keywords, (list, tuple)) else None,
            payload=payload_cls.from_dict(data),
            position_hint=hint,
            extra={k: copy.deepcopy(v) for k, v in data.items() if k not in known},
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "layer": self.layer,
            "name": self.name,
            "size": self.size,
            "color": self.color,
        }
        if self.is_decorative:
            out["is_decorative"] = True
        if self.description is not None:
            out["description"] = self.description
        if self.keywords is not None:
            out["keywords"] = list(self.keywords)
        out.update(self.payload.to_dict())
        out.update(copy.deepcopy(self.extra))
        if self.position_hint is not None:
            out["x"], out["y"] = self.position_hint
        return out

    def merged(self, patch: dict[str, Any]) -> "Node":
        """Return a copy with ``patch`` shallow-merged over the flat record.

        Changing ``layer`` re-selects the payload class; fields that do not
        belong to the new layer are kept in ``extra``.
        """
        record = self.to_dict()
        record.update(patch)
        return Node.from_dict(record)


@dataclass
class Link:
    """A directed relation between two nodes (rendered undirected)."""

    source: str
    target: str
    id: str = ""
    relationship_type: str | None = None
    strength: float | None = None
    evidence_detail: str | None = None
    quaternary_source: Any = None
    layer_transition: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    OPTIONAL_KEYS: ClassVar[tuple[str, ...]] = (
        "relationship_type",
        "strength",
        "evidence_detail",
        "quaternary_source",
        "layer_transition",
    )

    def __post_init__(self) -> None:
        if not self.id:
            self.id = f"{self.source}-{self.target}"

    @property
    def weight(self) -> float:
        """Visual weight; a missing or zero strength counts as 1."""
        return float(self.strength) if self.strength else 1.0

    def touches(self, node_id: str) -> bool:
        return self.source == node_id or self.target == node_id

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Link":
        if not isinstance(data, dict):
            raise ValueError(f"link must be an object, got {type(data).__name__}")
        source = _endpoint_id(data.get("source"))
        target = _endpoint_id(data.get("target"))
        strength = data.get("strength")
        known = {"id", "source", "target", *cls.OPTIONAL_KEYS, "index"}
        return cls(
            source=source,
            target=target,
            id=str(data["id"]) if data.get("id") else "",
            relationship_type=data.get("relationship_type"),
            strength=strength if _is_number(strength) else None,
            evidence_detail=data.get("evidence_detail"),
            quaternary_source=copy.deepcopy(data.get("quaternary_source")),
            layer_transition=data.get("layer_transition"),
            extra={k: copy.deepcopy(v) for k, v in data.items() if k not in known},
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id, "source": self.source, "target": self.target}
        for key in self.OPTIONAL_KEYS:
            value = getattr(self, key)
            if value is not None:
                out[key] = copy.deepcopy(value)
        out.update(copy.deepcopy(self.extra))
        return out

    def merged(self, patch: dict[str, Any]) -> "Link":
        record = self.to_dict()
        record.update(patch)
        return Link.from_dict(record)


@dataclass
class GraphData:
    """The unit of snapshotting, export and undo history."""

    nodes: list[Node] = field(default_factory=list)
    links: list[Link] = field(default_factory=list)
    quaternary_relations: list[Any] = field(default_factory=list)

    def clone(self) -> "GraphData":
        return copy.deepcopy(self)

    def node_index(self) -> dict[str, Node]:
        return {n.id: n for n in self.nodes}

    def node_ids(self) -> set[str]:
        return {n.id for n in self.nodes}

    def get_node(self, node_id: str) -> Node | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_link(self, link_id: str) -> Link | None:
        for link in self.links:
            if link.id == link_id:
                return link
        return None

    def dangling_links(self) -> list[Link]:
        """Links whose source or target is not a node of this graph."""
        ids = self.node_ids()
        return [l for l in self.links if l.source not in ids or l.target not in ids]

    def degree(self) -> Counter[str]:
        deg: Counter[str] = Counter()
        for link in self.links:
            deg[link.source] += 1
            deg[link.target] += 1
        return deg

    def density(self) -> float:
        n = len(self.nodes)
        if n < 2:
            return 0.0
        return len(self.links) / (n * (n - 1))

    def layer_counts(self) -> Counter[int]:
        return Counter(n.layer for n in self.nodes)

    @classmethod
    def from_dict(cls, data: Any) -> "GraphData":
        """Build from ``{nodes: [...], links: [...]}``.

        Raises ValueError if the shape is wrong or a record is malformed.
        """
        if not isinstance(data, dict):
            raise ValueError("graph data must be an object with 'nodes' and 'links'")
        nodes = data.get("nodes")
        links = data.get("links")
        if not isinstance(nodes, list) or not isinstance(links, list):
            raise ValueError("graph data requires 'nodes' and 'links' arrays")
        quaternary = data.get("quaternaryRelations", data.get("quaternary_relations", []))
        return cls(
            nodes=[Node.from_dict(n) for n in nodes],
            links=[Link.from_dict(l) for l in links],
            quaternary_relations=copy.deepcopy(quaternary) if isinstance(quaternary, list) else [],
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "nodes": [n.to_dict() for n in self.nodes],
            "links": [l.to_dict() for l in self.links],
        }
        if self.quaternary_relations:
            out["quaternaryRelations"] = copy.deepcopy(self.quaternary_relations)
        return out
