import json
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from pydantic import BaseModel

from cms.core.config import settings


def _normalize(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return _normalize(value.model_dump(mode="json"))
    if isinstance(value, Mapping):
        return {str(k): _normalize(v) for k, v in value.items()}
    if isinstance(value, (set, frozenset)):
        items = [_normalize(v) for v in value]
        return sorted(items, key=stable_dumps)
    if isinstance(value, (list, tuple)):
        return [_normalize(v) for v in value]
    return value


def stable_dumps(value: Any) -> str:
    """JSON with sorted keys at every level and no insignificant whitespace."""
    return json.dumps(
        _normalize(value),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def query_fingerprint(
    params: BaseModel | Mapping[str, Any] | None,
    fields: Optional[Iterable[str]] = None,
) -> str:
    """Serialize the recognised query parameters into a stable string.

    ``fields`` limits which parameters take part; for pydantic models it
    defaults to the declared fields. Unset (None) values are dropped so
    that an omitted parameter and an explicit null share a key.
    """
    if params is None:
        data: dict = {}
    elif isinstance(params, BaseModel):
        data = params.model_dump(mode="json", by_alias=True, exclude_none=True)
        if fields is None:
            fields = [
                info.alias or name for name, info in type(params).model_fields.items()
            ]
    else:
        data = dict(params)

    if fields is not None:
        allowed = set(fields)
        data = {k: v for k, v in data.items() if k in allowed}
    data = {k: v for k, v in data.items() if v is not None}
    return stable_dumps(data)


@dataclass(frozen=True)
class CacheTTL:
    record: int = 3600
    collection: int = 3600
    query: int = 1800
    taxonomy: int = 7200

    @classmethod
    def from_settings(cls) -> "CacheTTL":
        return cls(
            record=settings.CACHE_TTL_RECORD,
            collection=settings.CACHE_TTL_RECORD,
            query=settings.CACHE_TTL_QUERY,
            taxonomy=settings.CACHE_TTL_TAXONOMY,
        )


@dataclass(frozen=True)
class CacheKeys:
    """Key layout for one entity.

    Records live under ``<singular>:<id>[:<variant>]``; anything computed
    over many records lives under ``<plural>:list:`` so a single pattern
    delete drops every list variant. Derived aggregates sit under
    ``<plural>:<name>`` and are deleted by exact key.
    """

    singular: str
    plural: str
    variants: tuple[str, ...] = ()

    def record(self, record_id: Any, variant: Optional[str] = None) -> str:
        key = f"{self.singular}:{record_id}"
        return f"{key}:{variant}" if variant else key

    def record_keys(self, record_id: Any) -> list[str]:
        return [self.record(record_id)] + [
            self.record(record_id, v) for v in self.variants
        ]

    def collection(self, name: str = "all") -> str:
        return f"{self.plural}:list:{name}"

    def query(
        self,
        params: BaseModel | Mapping[str, Any] | None,
        fields: Optional[Iterable[str]] = None,
        name: str = "query",
    ) -> str:
        return f"{self.plural}:list:{name}:{query_fingerprint(params, fields)}"

    def derived(self, name: str, *parts: Any) -> str:
        return ":".join([self.plural, name, *map(str, parts)])

    @property
    def list_pattern(self) -> str:
        return f"{self.plural}:list:*"

    @property
    def record_pattern(self) -> str:
        return f"{self.singular}:*"

    @property
    def namespace_pattern(self) -> str:
        return f"{self.plural}:*"
